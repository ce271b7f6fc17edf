"""
URL configuration for the chat app.

URL structure:
    /api/v1/chat/conversations/                     - Caller's conversations (GET)
    /api/v1/chat/conversations/{peer_id}/messages/  - History (GET), append (POST)

WebSocket routes live in chat/routing.py.
"""

from django.urls import path

from chat.views import ConversationListView, ConversationMessagesView

app_name = "chat"

urlpatterns = [
    path("conversations/", ConversationListView.as_view(), name="conversation-list"),
    path(
        "conversations/<str:peer_id>/messages/",
        ConversationMessagesView.as_view(),
        name="conversation-messages",
    ),
]
