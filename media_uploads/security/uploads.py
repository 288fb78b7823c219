"""Upload validation rules and the errors raised by the upload store."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable

from media_uploads.config import ALLOWED_EXTENSIONS, MAX_FILE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IncomingFile:
    """A single payload of a multi-file upload with its declared name."""

    filename: str
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class StoredImage:
    """Result descriptor returned by the base64 save path."""

    path: str
    thumbnail_path: str


class UploadError(Exception):
    """Domain exception for upload errors."""

    def __init__(self, code: str, message: str, status: int):
        self.code = code
        self.message = message
        self.status = status
        super().__init__(message)


class ValidationFailure(UploadError):
    """A file broke one of the acceptance rules; nothing was stored."""

    def __init__(self, rule: str, code: str, message: str, status: int):
        self.rule = rule
        super().__init__(code, message, status)


class StorageFailure(UploadError):
    """Writing, decoding or resizing failed while storing an upload."""

    def __init__(self, message: str):
        super().__init__("storage_failure", message, status=500)


def is_valid_extension(
    file_name: str, allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS
) -> bool:
    """Return True if the file suffix is whitelisted, ignoring case.

    Everything from the last dot of the base name is the suffix, so a file
    called `.png` has the `.png` extension.
    """
    base_name = PurePath(file_name or "").name
    _, extension = os.path.splitext("x" + base_name)
    extension = extension.lower()
    if extension in ("", "."):
        return False
    return any(allowed.lower() == extension for allowed in allowed_extensions)


def is_valid_size(length: int, max_bytes: int = MAX_FILE_SIZE) -> bool:
    """Return True iff 0 < length <= max_bytes."""
    return 0 < length <= max_bytes


def validate(
    file: IncomingFile,
    *,
    allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS,
    max_bytes: int = MAX_FILE_SIZE,
) -> None:
    """
    Check a file against the extension whitelist and the size limit.

    The extension is checked first. Raises `ValidationFailure` carrying the
    name of the rule that failed.
    """
    if not is_valid_extension(file.filename, allowed_extensions):
        logger.warning("Rejected upload %r: extension not allowed", file.filename)
        raise ValidationFailure(
            "extension", "unsupported_extension", "Image is not valid", status=415
        )

    if not is_valid_size(file.length, max_bytes):
        logger.warning("Rejected upload %r: %s bytes", file.filename, file.length)
        # Empty payloads are malformed requests, oversized ones are 413.
        status = 413 if file.length > max_bytes else 400
        raise ValidationFailure(
            "size",
            "invalid_file_size",
            f"File size must be less than {max_bytes} bytes",
            status=status,
        )
