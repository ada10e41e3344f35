"""MockStrategy — canned completion for tests and offline runs. Never touches the network."""
import asyncio
import time

import httpx

from photoroast.constants import MOCK_DELAY_S, MOCK_MODEL, MOCK_ROAST, MOCK_USAGE, STRATEGY_MOCK
from photoroast.transport.strategy import RequestOptions, TransportStrategy


def mock_completion(content: str = MOCK_ROAST) -> dict:
    return {
        "id": "chatcmpl-mock-123",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": MOCK_MODEL,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": dict(MOCK_USAGE),
    }


class MockStrategy(TransportStrategy):
    name = STRATEGY_MOCK

    def __init__(self, delay_s: float = MOCK_DELAY_S, content: str = MOCK_ROAST) -> None:
        self._delay_s = delay_s
        self._content = content

    async def attempt(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        await asyncio.sleep(self._delay_s)
        return httpx.Response(
            200,
            json=mock_completion(self._content),
            request=httpx.Request(options.method, f"http://mock.invalid/{endpoint}"),
        )
