"""ImageEncoder tests"""
import asyncio
import base64
import time

import pytest

from photoroast.encoding import EncodedImage, ImageEncoder, InMemoryImageFile, LocalImageFile, analyze_image
from photoroast.errors import ErrorDetail, ErrorKind

JPEG_BYTES = b"\xff\xd8\xff\xe0" + bytes(range(256)) * 4


class SlowFile:
    """Read that never finishes on its own."""

    name = "slow.png"
    size = 10
    mime_type = "image/png"

    def __init__(self) -> None:
        self.cancelled = False

    async def read(self) -> bytes:
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return b"late"


class BrokenFile:
    name = "broken.gif"
    size = 10
    mime_type = "image/gif"

    async def read(self) -> bytes:
        raise OSError("disk on fire")


# ── success ───────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("mime", ["image/jpeg", "image/png", "image/gif", "image/webp"])
async def test_encode_round_trips_bytes(mime):
    encoder = ImageEncoder()
    file = InMemoryImageFile("photo", mime, JPEG_BYTES)

    result = await encoder.encode(file)

    assert isinstance(result, EncodedImage)
    assert result.data_uri.startswith(f"data:{mime};base64,")
    assert base64.b64decode(result.payload) == JPEG_BYTES


async def test_encode_carries_metadata():
    encoder = ImageEncoder()
    file = InMemoryImageFile("photo.jpg", "image/jpeg", JPEG_BYTES)

    result = await encoder.encode(file)

    assert result.filename == "photo.jpg"
    assert result.size == len(JPEG_BYTES)
    assert result.mime_type == "image/jpeg"
    assert result.duration_ms >= 0


async def test_encode_five_mib_under_two_seconds():
    encoder = ImageEncoder()
    file = InMemoryImageFile("big.jpg", "image/jpeg", b"\xab" * (5 * 1024 * 1024))

    started = time.perf_counter()
    result = await encoder.encode(file)

    assert isinstance(result, EncodedImage)
    assert time.perf_counter() - started < 2.0


async def test_encode_local_file(tmp_path):
    path = tmp_path / "Holiday.JPG"
    path.write_bytes(JPEG_BYTES)
    file = LocalImageFile.from_path(path)

    result = await ImageEncoder().encode(file)

    assert file.mime_type == "image/jpeg"
    assert file.header == JPEG_BYTES[:12]
    assert base64.b64decode(result.payload) == JPEG_BYTES


# ── failures ──────────────────────────────────────────────────────────────────


async def test_encode_none_is_invalid_input():
    result = await ImageEncoder().encode(None)

    assert isinstance(result, ErrorDetail)
    assert result.kind is ErrorKind.INVALID_INPUT
    assert result.timestamp > 0


async def test_encode_object_without_file_shape_fails_fast():
    result = await ImageEncoder().encode({"name": "x.png"})

    assert result.kind is ErrorKind.CONVERSION_FAILED


async def test_encode_read_error():
    encoder = ImageEncoder()

    result = await encoder.encode(BrokenFile())

    assert result.kind is ErrorKind.READ_ERROR
    assert "disk on fire" not in result.message


async def test_encode_timeout_cancels_read():
    encoder = ImageEncoder()
    file = SlowFile()

    result = await encoder.encode(file, timeout_ms=20)

    assert result.kind is ErrorKind.TIMEOUT
    assert file.cancelled
    assert encoder.active_reads == 0


# ── concurrency / metrics ─────────────────────────────────────────────────────


async def test_concurrent_encodes_do_not_leak_state():
    encoder = ImageEncoder()
    files = [InMemoryImageFile(f"{i}.png", "image/png", bytes([i]) * 32) for i in range(10)]

    results = await asyncio.gather(*(encoder.encode(f) for f in files))

    assert [r.filename for r in results] == [f.name for f in files]
    assert all(base64.b64decode(r.payload) == f.data for r, f in zip(results, files))
    assert encoder.active_reads == 0


async def test_metrics_track_success_rate():
    encoder = ImageEncoder()
    await encoder.encode(InMemoryImageFile("a.png", "image/png", b"x"))
    await encoder.encode(BrokenFile())

    metrics = encoder.metrics()

    assert metrics["total_processed"] == 2
    assert metrics["success_rate"] == 0.5

    encoder.reset_metrics()
    assert encoder.metrics()["total_processed"] == 0


# ── input edge cases ──────────────────────────────────────────────────────────


class EofFile:
    name = "eof.png"
    size = 10
    mime_type = "image/png"

    async def read(self) -> bytes:
        raise EOFError("truncated")


@pytest.mark.parametrize("mime", ["", "   "])
async def test_encode_blank_mime_fails_fast(mime):
    file = InMemoryImageFile("photo.bmp", mime, b"BM\x00\x01")

    result = await ImageEncoder().encode(file)

    assert isinstance(result, ErrorDetail)
    assert result.kind is ErrorKind.CONVERSION_FAILED


async def test_encode_unknown_suffix_local_file_fails_fast(tmp_path):
    path = tmp_path / "scan.bmp"
    path.write_bytes(b"BM\x00\x01")

    result = await ImageEncoder().encode(LocalImageFile.from_path(path))

    assert result.kind is ErrorKind.CONVERSION_FAILED


async def test_encode_any_reader_exception_is_read_error():
    encoder = ImageEncoder()

    result = await encoder.encode(EofFile())

    assert result.kind is ErrorKind.READ_ERROR
    assert "truncated" not in result.message
    assert encoder.active_reads == 0


async def test_encode_explicit_zero_timeout_is_not_the_default():
    encoder = ImageEncoder(timeout_ms=10_000)

    started = time.perf_counter()
    result = await encoder.encode(SlowFile(), timeout_ms=0)

    assert result.kind is ErrorKind.TIMEOUT
    assert time.perf_counter() - started < 1.0


# ── analysis ──────────────────────────────────────────────────────────────────


def test_analyze_image_reports_format_and_header_match():
    analysis = analyze_image(InMemoryImageFile("a.jpg", "image/jpeg", JPEG_BYTES))

    assert analysis.detected_format == "JPEG"
    assert analysis.format_matches is True
    assert analysis.estimated_processing_ms == 100.0


def test_analyze_image_flags_mismatch_and_clamps_estimate():
    analysis = analyze_image(InMemoryImageFile("a.png", "image/png", JPEG_BYTES * 10_000))

    assert analysis.detected_format == "PNG"
    assert analysis.format_matches is False
    assert analysis.estimated_processing_ms == 8000.0


def test_analyze_image_without_header_or_known_type():
    class Descriptor:
        name = "x.bmp"
        size = 2048
        mime_type = "image/bmp"

    analysis = analyze_image(Descriptor())

    assert analysis.detected_format == "UNKNOWN"
    assert analysis.format_matches is None
    assert analysis.estimated_processing_ms == 100.0
