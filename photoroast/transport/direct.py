"""DirectStrategy — calls the API host with no intermediary."""
import httpx

from photoroast.constants import OPENAI_BASE_URL, STRATEGY_DIRECT
from photoroast.transport.strategy import RequestOptions, TransportStrategy


class DirectStrategy(TransportStrategy):
    name = STRATEGY_DIRECT

    def __init__(self, http: httpx.AsyncClient, api_base_url: str = OPENAI_BASE_URL) -> None:
        self._http = http
        self._api_base_url = api_base_url.rstrip("/")

    async def attempt(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        return await self._http.request(
            options.method,
            f"{self._api_base_url}/{endpoint}",
            headers={**options.headers, "Content-Type": "application/json"},
            json=options.json,
        )
