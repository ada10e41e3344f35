"""Validation gate — pre-flight checks run before any file is read."""
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from photoroast.constants import (
    MAGIC_BYTES,
    MAX_UPLOAD_BYTES,
    MSG_ERR_FILE_EMPTY,
    MSG_ERR_FILE_FORMAT,
    MSG_ERR_FILE_HEADER,
    MSG_ERR_FILE_SIZE,
    MSG_ERR_NO_FILE,
    SANITIZED_EXT_MAX,
    SANITIZED_NAME_MAX,
    SUPPORTED_MIME_TYPES,
    WEBP_MARKER,
    WEBP_MARKER_OFFSET,
)
from photoroast.errors import ErrorDetail, ErrorKind

logger = logging.getLogger(__name__)

_TRAVERSAL = re.compile(r"\.\./|\.\.\\")
_UNSAFE = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    error: Optional[ErrorDetail] = None
    sanitized_name: Optional[str] = None


def _reject(kind: ErrorKind, message: str) -> ValidationOutcome:
    return ValidationOutcome(ok=False, error=ErrorDetail(kind=kind, message=message))


def sanitize_filename(filename: str) -> str:
    """Strip traversal and unsafe characters; keep a short extension."""
    sanitized = _UNSAFE.sub("_", _TRAVERSAL.sub("", filename))
    stem, dot, ext = sanitized.rpartition(".")
    match (stem, dot, ext):
        case (s, ".", e) if s and len(e) <= SANITIZED_EXT_MAX:
            keep = SANITIZED_NAME_MAX - SANITIZED_EXT_MAX - 1
            sanitized = s.replace(".", "_")[:keep] + "." + e
        case _:
            sanitized = sanitized[:SANITIZED_NAME_MAX]
    return sanitized.lower()


def check_magic_bytes(header: bytes, mime_type: str) -> bool:
    """True when the leading bytes look like the declared format."""
    signature = MAGIC_BYTES.get(mime_type)
    match signature:
        case None:
            return False
        case sig if not header.startswith(sig):
            return False
        case _:
            pass
    if mime_type == "image/webp":
        return header[WEBP_MARKER_OFFSET:WEBP_MARKER_OFFSET + len(WEBP_MARKER)] == WEBP_MARKER
    return True


def validate(
    file: Any,
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
    supported_types: tuple[str, ...] = SUPPORTED_MIME_TYPES,
) -> ValidationOutcome:
    """Check size, declared MIME type and (when present) header bytes.

    Pure: looks only at attributes already on the descriptor. An optional
    ``header`` attribute holding the first bytes enables the signature check.
    """
    if file is None:
        return _reject(ErrorKind.FILE_INVALID, MSG_ERR_NO_FILE)

    size = getattr(file, "size", None)
    match size:
        case int() if size > 0:
            pass
        case _:
            return _reject(ErrorKind.FILE_INVALID, MSG_ERR_FILE_EMPTY)

    if size > max_bytes:
        return _reject(ErrorKind.FILE_SIZE, MSG_ERR_FILE_SIZE % (max_bytes // (1024 * 1024)))

    mime_type = getattr(file, "mime_type", None)
    match mime_type:
        case str() as m if m and m in supported_types:
            pass
        case _:
            return _reject(ErrorKind.FILE_FORMAT, MSG_ERR_FILE_FORMAT)

    header = getattr(file, "header", None)
    if header and not check_magic_bytes(header, mime_type):
        logger.debug("Header mismatch for declared type %s", mime_type)
        return _reject(ErrorKind.FILE_INVALID, MSG_ERR_FILE_HEADER)

    name = getattr(file, "name", None)
    return ValidationOutcome(ok=True, sanitized_name=sanitize_filename(name) if name else None)
