"""ImageEncoder — turns an uploaded file into a base64 data URI."""
import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from photoroast.constants import (
    DATA_URI_PREFIX,
    ENCODE_TIMEOUT_MS,
    ESTIMATE_MAX_MS,
    ESTIMATE_MIN_MS,
    EXTENSION_MIME_TYPES,
    MIME_FORMATS,
    MSG_ENCODE_DONE,
    MSG_ENCODE_READ_FAILED,
    MSG_ERR_BAD_FILE_OBJECT,
    MSG_ERR_ENCODE_TIMEOUT,
    MSG_ERR_NO_FILE,
    MSG_ERR_READ,
    UNKNOWN_FORMAT,
)
from photoroast.errors import ErrorDetail, ErrorKind
from photoroast.validation import check_magic_bytes

logger = logging.getLogger(__name__)

HEADER_BYTES = 12


class ImageFile(Protocol):
    name: str
    size: int
    mime_type: str

    async def read(self) -> bytes: ...


@dataclass(frozen=True)
class InMemoryImageFile:
    """Upload already held in memory (e.g. a request body)."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def header(self) -> bytes:
        return self.data[:HEADER_BYTES]

    async def read(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class LocalImageFile:
    path: Path
    name: str
    mime_type: str
    size: int
    header: bytes = b""

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "LocalImageFile":
        p = Path(path)
        with p.open("rb") as fh:
            header = fh.read(HEADER_BYTES)
        return cls(
            path=p,
            name=p.name,
            mime_type=EXTENSION_MIME_TYPES.get(p.suffix.lower(), ""),
            size=p.stat().st_size,
            header=header,
        )

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


@dataclass(frozen=True)
class EncodedImage:
    filename: str
    size: int
    mime_type: str
    data_uri: str
    duration_ms: float

    @property
    def payload(self) -> str:
        return self.data_uri.split(",", 1)[1]


EncodingOutcome = Union[EncodedImage, ErrorDetail]


@dataclass(frozen=True)
class ImageAnalysis:
    detected_format: str
    format_matches: Optional[bool]
    estimated_processing_ms: float


def analyze_image(file: ImageFile) -> ImageAnalysis:
    """Format as declared, whether the header agrees, and a rough encode-time guess.

    ``format_matches`` is None when the descriptor carries no header bytes.
    """
    detected = MIME_FORMATS.get(file.mime_type, UNKNOWN_FORMAT)
    header = getattr(file, "header", None)
    estimate = min(max(file.size / 1024, ESTIMATE_MIN_MS), ESTIMATE_MAX_MS)
    return ImageAnalysis(
        detected_format=detected,
        format_matches=check_magic_bytes(header, file.mime_type) if header else None,
        estimated_processing_ms=estimate,
    )


def to_data_uri(data: bytes, mime_type: str) -> str:
    return (DATA_URI_PREFIX % mime_type) + base64.standard_b64encode(data).decode()


def _has_file_shape(file: Any) -> bool:
    return (
        isinstance(getattr(file, "name", None), str)
        and isinstance(getattr(file, "size", None), int)
        and isinstance(getattr(file, "mime_type", None), str)
        and bool(file.mime_type.strip())
        and callable(getattr(file, "read", None))
    )


@dataclass
class _Metrics:
    processed: int = 0
    succeeded: int = 0
    total_ms: float = 0.0


class ImageEncoder:
    """Reads files asynchronously and wraps their bytes as data URIs.

    Instances hold only counters, so one encoder can serve concurrent calls.
    """

    def __init__(self, timeout_ms: int = ENCODE_TIMEOUT_MS) -> None:
        self._timeout_ms = timeout_ms
        self._active_reads = 0
        self._metrics = _Metrics()

    @property
    def active_reads(self) -> int:
        return self._active_reads

    async def encode(self, file: Optional[ImageFile], timeout_ms: Optional[int] = None) -> EncodingOutcome:
        match file:
            case None:
                return ErrorDetail(ErrorKind.INVALID_INPUT, MSG_ERR_NO_FILE)
            case f if not _has_file_shape(f):
                return ErrorDetail(ErrorKind.CONVERSION_FAILED, MSG_ERR_BAD_FILE_OBJECT)
            case _:
                pass

        limit_s = (self._timeout_ms if timeout_ms is None else timeout_ms) / 1000
        start = time.perf_counter()
        self._active_reads += 1
        try:
            # wait_for cancels the read on timeout, so a late result is never seen.
            data = await asyncio.wait_for(file.read(), timeout=limit_s)
        except asyncio.TimeoutError:
            self._record(start, ok=False)
            return ErrorDetail(ErrorKind.TIMEOUT, MSG_ERR_ENCODE_TIMEOUT)
        except Exception as exc:
            logger.error(MSG_ENCODE_READ_FAILED, file.name, exc)
            self._record(start, ok=False)
            return ErrorDetail(ErrorKind.READ_ERROR, MSG_ERR_READ)
        finally:
            self._active_reads -= 1

        duration_ms = self._record(start, ok=True)
        logger.debug(MSG_ENCODE_DONE, file.name, file.size, duration_ms)
        return EncodedImage(
            filename=file.name,
            size=file.size,
            mime_type=file.mime_type,
            data_uri=to_data_uri(data, file.mime_type),
            duration_ms=duration_ms,
        )

    # ── metrics ───────────────────────────────────────────────────────────────

    def _record(self, start: float, ok: bool) -> float:
        elapsed_ms = (time.perf_counter() - start) * 1000
        self._metrics.processed += 1
        self._metrics.total_ms += elapsed_ms
        if ok:
            self._metrics.succeeded += 1
        return elapsed_ms

    def metrics(self) -> dict:
        total = self._metrics.processed
        return {
            "total_processed": total,
            "average_processing_ms": self._metrics.total_ms / total if total else 0.0,
            "success_rate": self._metrics.succeeded / total if total else 0.0,
            "active_reads": self._active_reads,
        }

    def reset_metrics(self) -> None:
        self._metrics = _Metrics()
