"""
Chat app: the conversation store and real-time fan-out.

This app handles:
- 1:1 conversations keyed by the sorted participant pair
- Ordered, immutable message logs
- WebSocket replay-then-live delivery
- Foreground presence per client session

Related apps:
    - authentication: Profiles and identity-token authentication
    - notifications: Push alerts for appended messages (via message_appended)

Usage:
    from chat.identifiers import conversation_id_for
    from chat.services import ConversationStore, MessageDraft

    store = ConversationStore()
    message = await store.append(
        conversation_id_for("u1", "u2"),
        MessageDraft(sender_id="u1", receiver_id="u2", body="hola"),
    )
"""
