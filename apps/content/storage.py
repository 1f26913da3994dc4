# content/storage.py
"""
Thin adapter over Django's storage API.

`default_storage` is the local filesystem in development and S3
(django-storages) when AWS_STORAGE_BUCKET_NAME is configured.
"""
import logging
import os
import uuid

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import default_storage

from common.exceptions import StorageError, ValidationError
from .models import Content

logger = logging.getLogger(__name__)


def detect_media_type(mime_type):
    if not mime_type:
        return Content.UNKNOWN
    if mime_type.startswith("video"):
        return Content.VIDEO
    if mime_type.startswith("image"):
        return Content.IMAGE
    return Content.OTHER


def validate_upload(upload):
    """Reject missing, empty, oversized or disallowed files."""
    if upload is None or not getattr(upload, "size", 0):
        raise ValidationError("Uploaded file is missing or empty.")

    max_bytes = settings.CONTENT_MAX_UPLOAD_MB * 1024 * 1024
    if upload.size > max_bytes:
        raise ValidationError(f"File exceeds the {settings.CONTENT_MAX_UPLOAD_MB} MB upload limit.")

    media_type = detect_media_type(getattr(upload, "content_type", None))
    if media_type not in settings.CONTENT_ALLOWED_MEDIA_TYPES:
        raise ValidationError(f"File type '{upload.content_type or 'unknown'}' is not allowed.")
    return media_type


def build_storage_key(folder, filename):
    _, ext = os.path.splitext(filename or "")
    return f"{folder.strip('/')}/{uuid.uuid4().hex}{ext.lower()}"


def upload_file(upload, folder=None):
    """Store the file and return its public URL."""
    key = build_storage_key(folder or settings.CONTENT_UPLOAD_FOLDER, getattr(upload, "name", ""))
    try:
        saved_path = default_storage.save(key, upload)
        url = default_storage.url(saved_path)
    except (OSError, SuspiciousFileOperation, BotoCoreError, ClientError) as e:
        logger.exception("Upload of %s to storage failed", key)
        raise StorageError(f"File upload failed: {e}") from e
    logger.info("Stored %s (%s bytes) at %s", key, upload.size, url)
    return url
