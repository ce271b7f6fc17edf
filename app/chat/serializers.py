"""
Serializers for the chat API.

- MessageSerializer: Stored message (read-only)
- MessageCreateSerializer: Append request, JSON or multipart with an image
- ConversationSerializer: Conversation list entry from the caller's view
"""

from rest_framework import serializers

from chat.constants import ATTACHMENT_CONFIG, MESSAGE_CONFIG
from chat.models import Conversation, Message


class MessageSerializer(serializers.ModelSerializer):
    """Stored message."""

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_id",
            "receiver_id",
            "body",
            "attachment_url",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Request body for appending a message.

    Exactly the fields a client controls: the sender is the caller and the
    receiver comes from the URL. Either `attachment` (an uploaded image) or
    `attachment_url` (an already uploaded one) may carry the image.
    """

    body = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_BODY_LENGTH,
        required=False,
        allow_blank=True,
        trim_whitespace=False,
        default="",
    )
    attachment_url = serializers.URLField(
        max_length=2048,
        required=False,
        allow_null=True,
        default=None,
    )
    attachment = serializers.FileField(required=False, allow_null=True, default=None)

    def validate_attachment(self, value):
        if value is None:
            return value
        if value.size > ATTACHMENT_CONFIG.MAX_SIZE_BYTES:
            raise serializers.ValidationError("Attachment is too large.")
        content_type = getattr(value, "content_type", None)
        if content_type and content_type not in ATTACHMENT_CONFIG.ALLOWED_CONTENT_TYPES:
            raise serializers.ValidationError("Only image attachments are supported.")
        return value

    def validate(self, attrs):
        if attrs.get("attachment") is not None and attrs.get("attachment_url"):
            raise serializers.ValidationError(
                "Send either attachment or attachment_url, not both."
            )
        return attrs


class ConversationSerializer(serializers.ModelSerializer):
    """Conversation as listed for the requesting user."""

    peer_id = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = ["id", "peer_id", "last_message_at", "created_at"]
        read_only_fields = fields

    def get_peer_id(self, obj) -> str:
        request = self.context.get("request")
        return obj.peer_of(request.user.uid) if request else obj.user_higher
