"""RelayProxyStrategy — routes through a public URL-rewriting CORS relay."""
from urllib.parse import quote

import httpx

from photoroast.constants import OPENAI_BASE_URL, RELAY_URL_TEMPLATE, STRATEGY_RELAY
from photoroast.transport.strategy import RequestOptions, TransportStrategy


class RelayProxyStrategy(TransportStrategy):
    name = STRATEGY_RELAY

    def __init__(
        self,
        http: httpx.AsyncClient,
        url_template: str = RELAY_URL_TEMPLATE,
        api_base_url: str = OPENAI_BASE_URL,
    ) -> None:
        self._http = http
        self._url_template = url_template
        self._api_base_url = api_base_url.rstrip("/")

    def relay_url(self, endpoint: str) -> str:
        target = f"{self._api_base_url}/{endpoint}"
        return self._url_template.format(url=quote(target, safe=""))

    async def attempt(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        return await self._http.request(
            options.method,
            self.relay_url(endpoint),
            headers={
                **options.headers,
                "Content-Type": "application/json",
                "X-Requested-With": "XMLHttpRequest",
            },
            json=options.json,
        )
