"""BackendProxyStrategy — same-origin backend path that forwards to the API."""
import httpx

from photoroast.constants import BACKEND_HEALTH_PATH, BACKEND_PROXY_URL, PROBE_TIMEOUT_S, STRATEGY_BACKEND
from photoroast.transport.strategy import RequestOptions, TransportStrategy


class BackendProxyStrategy(TransportStrategy):
    name = STRATEGY_BACKEND

    def __init__(self, http: httpx.AsyncClient, backend_url: str = BACKEND_PROXY_URL) -> None:
        self._http = http
        self._backend_url = backend_url.rstrip("/")

    async def attempt(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        return await self._http.request(
            options.method,
            f"{self._backend_url}/{endpoint}",
            headers={**options.headers, "Content-Type": "application/json"},
            json=options.json,
        )

    async def is_alive(self, timeout_s: float = PROBE_TIMEOUT_S) -> bool:
        """Liveness probe: GET <backend>/health answers 2xx. Raises on network failure."""
        response = await self._http.get(f"{self._backend_url}/{BACKEND_HEALTH_PATH}", timeout=timeout_s)
        return response.is_success
