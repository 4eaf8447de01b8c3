"""
Lab file storage.

Files land under ``MEDIA_ROOT/<LAB_UPLOAD_DIR>`` with a generated name
and are referenced from lab results by their media-relative path.
"""
from __future__ import annotations

import logging
import os
import posixpath
import secrets
import time
from functools import partial

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import default_storage
from django.db import transaction
from rest_framework import status

from mobile.attachments import decode_file_paths
from records.exceptions import BusinessError
from records.models import LabResult

logger = logging.getLogger(__name__)

EXTENSIONS = {
    'application/pdf': 'pdf',
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
}


def save_lab_file(upload) -> str:
    """Validate and store an uploaded lab file, returning its relative path."""
    if upload is None:
        raise BusinessError('No file uploaded')
    content_type = (getattr(upload, 'content_type', '') or '').split(';')[0].strip()
    if content_type not in settings.ALLOWED_UPLOAD_TYPES:
        raise BusinessError('Invalid file type. Only PDF, JPG, PNG, GIF allowed.',
                            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
    if (upload.size or 0) > settings.UPLOAD_MAX_MB * 1024 * 1024:
        raise BusinessError(f"File too large. Max {settings.UPLOAD_MAX_MB}MB.",
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)
    ext = EXTENSIONS.get(content_type) or os.path.splitext(upload.name)[1].lstrip('.').lower()
    name = f"lab_{int(time.time())}_{secrets.token_hex(8)}.{ext}"
    stored = default_storage.save(f"{settings.LAB_UPLOAD_DIR.strip('/')}/{name}", upload)
    logger.info('Stored lab file %s (%s bytes)', stored, upload.size)
    return stored


def is_lab_path(path: str) -> bool:
    """True for a relative path inside the lab upload directory."""
    root = settings.LAB_UPLOAD_DIR.strip('/') + '/'
    if not path.startswith(root) or '\\' in path:
        return False
    return '..' not in path.split('/') and posixpath.normpath(path) == path


def _still_referenced(path: str) -> bool:
    for raw in LabResult.objects.filter(result_file_path__contains=path).values_list('result_file_path', flat=True):
        if path in decode_file_paths(raw):
            return True
    return False


def delete_stored_files(raw) -> int:
    """Remove the files a deleted lab result referenced.

    Paths outside the lab upload directory and files another lab result
    still points at are left alone.
    """
    removed = 0
    for path in decode_file_paths(raw):
        if not is_lab_path(path):
            logger.warning('Not removing %s: outside %s', path, settings.LAB_UPLOAD_DIR)
            continue
        if _still_referenced(path):
            continue
        try:
            if default_storage.exists(path):
                default_storage.delete(path)
                removed += 1
        except (SuspiciousFileOperation, OSError) as e:
            logger.warning('Could not remove %s: %s', path, e)
    return removed


def delete_files_on_commit(raw) -> None:
    """Schedule :func:`delete_stored_files` for after the surrounding commit."""
    if raw:
        transaction.on_commit(partial(delete_stored_files, raw))
