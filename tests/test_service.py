"""End-to-end through RoastService with the mock strategy and a MockTransport API."""
import json

import httpx
import pytest

from photoroast.completion import Success
from photoroast.config import Config
from photoroast.encoding import EncodedImage, InMemoryImageFile
from photoroast.errors import ErrorKind
from photoroast.main import main, roast
from photoroast.service import build_service

JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 1_200_000


async def test_happy_path_scenario():
    service = await build_service(Config(api_key=None, transport_strategy="mock"))
    file = InMemoryImageFile("photo.jpg", "image/jpeg", JPEG)

    assert service.validate(file).ok
    analysis = service.analyze(file)
    assert (analysis.detected_format, analysis.format_matches) == ("JPEG", True)
    assert analysis.estimated_processing_ms == pytest.approx(len(JPEG) / 1024)
    encoded = await service.encode(file)
    assert isinstance(encoded, EncodedImage)
    assert encoded.data_uri.startswith("data:image/jpeg;base64,")

    result = await service.generate(encoded, persona="default")

    assert isinstance(result, Success)
    assert result.elapsed_ms > 0
    assert service.get_usage_stats().total_tokens == 117
    assert service.strategy_info()["current"] == "mock"
    assert service.encoder_metrics()["total_processed"] == 1
    await service.aclose()


async def test_oversized_file_scenario():
    service = await build_service(Config(api_key=None, transport_strategy="mock"))

    outcome = service.validate(InMemoryImageFile("big.jpg", "image/jpeg", b"\xff\xd8\xff" + b"\x00" * (6 * 1024 * 1024)))

    assert not outcome.ok
    assert outcome.error.kind is ErrorKind.FILE_SIZE
    await service.aclose()


async def test_backend_chain_reaches_api_through_http_client():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        match request.url.path:
            case "/api/proxy/health":
                return httpx.Response(200, json={"status": "ok"})
            case _:
                return httpx.Response(
                    200,
                    json={"choices": [{"message": {"content": "Nice hat."}}], "usage": {"total_tokens": 50}},
                )

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = await build_service(Config(api_key="sk-test"), http=http)

    result = await service.generate("data:image/png;base64,iVBORw0KGgo=", persona="news-anchor")

    assert result == Success(text="Nice hat.", elapsed_ms=result.elapsed_ms)
    post = seen[-1]
    assert post.url.path == "/api/proxy/chat/completions"
    assert post.headers["Authorization"] == "Bearer sk-test"
    assert json.loads(post.content)["model"] == "gpt-4o"

    await service.aclose()
    assert not http.is_closed
    await http.aclose()


async def test_rate_limited_through_every_strategy():
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/health"):
            return httpx.Response(200)
        calls["n"] += 1
        return httpx.Response(429, json={"error": {"message": "slow down"}})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = await build_service(Config(api_key="sk-test"), http=http)

    result = await service.generate("data:image/png;base64,iVBORw0KGgo=")

    assert result.kind is ErrorKind.RATE_LIMIT
    assert result.retry_after_s == 60
    # backend then direct, one pass, no client retry
    assert calls["n"] == 2
    await http.aclose()


# ── entry point ───────────────────────────────────────────────────────────────


async def test_roast_local_file_in_mock_mode(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(JPEG)

    ok, text = await roast(Config(api_key=None, transport_strategy="mock"), str(path), "professor")

    assert ok
    assert text


async def test_roast_reports_validation_error(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello")

    ok, text = await roast(Config(api_key=None, transport_strategy="mock"), str(path))

    assert not ok
    assert "JPEG" in text


async def test_roast_missing_file():
    ok, _ = await roast(Config(api_key=None, transport_strategy="mock"), "/nonexistent/photo.jpg")

    assert not ok


def test_main_without_args_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().out
