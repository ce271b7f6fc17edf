"""
Attachment storage on top of Django's storage API.

Images are written to <MEDIA storage>/chat_images/<conversation id>/<uuid><ext>
and referenced from messages by URL only. Any Django storage backend works
(FileSystemStorage by default; S3 or GCS storages in production).

Usage:
    from chat.attachments import AttachmentStore

    url = AttachmentStore().put(uploaded.read(), uploaded.name, conversation_id)
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from chat.constants import ATTACHMENT_CONFIG
from core.exceptions import TransientIOError, ValidationError

logger = logging.getLogger(__name__)


class AttachmentStore:
    """BlobStore writing attachments through a Django storage backend."""

    def __init__(self, storage=None):
        self.storage = storage if storage is not None else default_storage

    def validate(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        """
        Check size and type; returns the resolved content type.

        Raises:
            ValidationError: empty, too large, or not an allowed image type
        """
        if not data:
            raise ValidationError("Attachment is empty", error_code="EMPTY_ATTACHMENT")
        if len(data) > ATTACHMENT_CONFIG.MAX_SIZE_BYTES:
            raise ValidationError(
                "Attachment is too large",
                error_code="ATTACHMENT_TOO_LARGE",
                details={"max_bytes": ATTACHMENT_CONFIG.MAX_SIZE_BYTES},
            )
        content_type = content_type or mimetypes.guess_type(filename)[0] or ""
        if content_type not in ATTACHMENT_CONFIG.ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                "Only image attachments are supported",
                error_code="UNSUPPORTED_ATTACHMENT",
                details={"content_type": content_type},
            )
        return content_type

    def put(
        self,
        data: bytes,
        filename: str,
        conversation_id: str,
        content_type: str | None = None,
    ) -> str:
        """Persist data and return its URL."""
        content_type = self.validate(data, filename, content_type)
        extension = os.path.splitext(filename)[1].lower() or (
            mimetypes.guess_extension(content_type) or ""
        )
        name = f"{ATTACHMENT_CONFIG.UPLOAD_PREFIX}/{conversation_id}/{uuid.uuid4().hex}{extension}"

        try:
            saved_name = self.storage.save(name, ContentFile(data))
            url = self.storage.url(saved_name)
        except OSError as e:
            logger.warning(f"Attachment upload failed for {conversation_id}: {e}")
            raise TransientIOError(
                "Attachment storage unavailable",
                error_code="BLOB_STORE_UNAVAILABLE",
            ) from e

        logger.info(f"Stored attachment {saved_name} ({len(data)} bytes)")
        return url
