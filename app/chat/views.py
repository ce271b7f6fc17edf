"""
Views for the chat API.

URL Structure:
    /api/v1/chat/conversations/                     GET
    /api/v1/chat/conversations/{peer_id}/messages/  GET, POST

Design Decisions:
    - Conversations are addressed by peer uid; the canonical id is derived
      from (caller, peer) so clients never build it themselves
    - All reads and writes go through ConversationStore
    - A draft is validated before its upload is stored, so a rejected
      message leaves no attachment behind
    - Store errors (core.exceptions) are rendered by
      core.views.api_exception_handler: 400, 404, 503 + Retry-After
"""

from __future__ import annotations

from dataclasses import replace

from asgiref.sync import async_to_sync
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.attachments import AttachmentStore
from chat.constants import MESSAGE_CONFIG
from chat.identifiers import conversation_id_for
from chat.serializers import (
    ConversationSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)
from chat.services import ConversationStore, MessageDraft


class ConversationListView(APIView):
    """
    List the caller's conversations, most recently active first.

    URL: /api/v1/chat/conversations/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List conversations",
        tags=["Chat"],
        responses={200: ConversationSerializer(many=True)},
    )
    def get(self, request):
        conversations = async_to_sync(ConversationStore().conversations_for)(request.user.uid)
        serializer = ConversationSerializer(
            conversations, many=True, context={"request": request}
        )
        return Response(serializer.data)


class ConversationMessagesView(APIView):
    """
    Read or append to the conversation between the caller and a peer.

    GET: Ordered history, optionally after a message id
    POST: Append a message (JSON, or multipart with an image attachment)

    URL: /api/v1/chat/conversations/{peer_id}/messages/
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="Conversation history",
        tags=["Chat"],
        parameters=[
            OpenApiParameter(
                name="after",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Only messages appended after this message id",
            ),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Maximum messages (default {MESSAGE_CONFIG.DEFAULT_HISTORY_LIMIT})",
            ),
        ],
        responses={200: MessageSerializer(many=True)},
    )
    def get(self, request, peer_id):
        conversation_id = conversation_id_for(request.user.uid, peer_id)
        try:
            after = request.query_params.get("after")
            after = int(after) if after not in (None, "") else None
            limit = int(
                request.query_params.get("limit", MESSAGE_CONFIG.DEFAULT_HISTORY_LIMIT)
            )
        except ValueError:
            return Response(
                {"error": "after and limit must be integers", "error_code": "INVALID_QUERY"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        messages = async_to_sync(ConversationStore().history)(
            conversation_id, after_id=after, limit=limit
        )
        return Response(MessageSerializer(messages, many=True).data)

    @extend_schema(
        summary="Send message",
        description=(
            "Append a message to the conversation with peer_id. The server assigns "
            "created_at. A 503 response is retryable."
        ),
        tags=["Chat"],
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Empty or invalid message"),
            503: OpenApiResponse(description="Store unavailable, retry later"),
        },
    )
    def post(self, request, peer_id):
        conversation_id = conversation_id_for(request.user.uid, peer_id)
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        store = ConversationStore()
        upload = data["attachment"]
        draft = MessageDraft(
            sender_id=request.user.uid,
            receiver_id=peer_id,
            body=data["body"],
            attachment_url=data["attachment_url"],
        )
        # The upload stands in for its URL until it is stored
        store.clean_draft(
            conversation_id,
            replace(draft, attachment_url=draft.attachment_url or upload.name)
            if upload is not None
            else draft,
        )

        if upload is not None:
            url = AttachmentStore().put(
                upload.read(),
                upload.name,
                conversation_id,
                content_type=getattr(upload, "content_type", None),
            )
            draft = replace(draft, attachment_url=request.build_absolute_uri(url))

        message = async_to_sync(store.append)(conversation_id, draft)
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
