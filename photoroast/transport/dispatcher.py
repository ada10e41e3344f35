"""TransportDispatcher — tries each strategy in order until one answers 2xx."""
import logging
from typing import Optional, Sequence

import httpx

from photoroast.config import Config
from photoroast.constants import (
    MSG_ERR_ALL_STRATEGIES,
    MSG_PROBE_FAILED,
    MSG_STRATEGIES_SELECTED,
    MSG_STRATEGY_ATTEMPT,
    MSG_STRATEGY_FAILED,
    MSG_STRATEGY_OK,
    MSG_STRATEGY_STATUS,
    PROBE_TIMEOUT_S,
    STRATEGY_AUTO,
    STRATEGY_MODES,
    STRATEGY_RELAY,
)
from photoroast.errors import TransportError
from photoroast.transport.backend import BackendProxyStrategy
from photoroast.transport.direct import DirectStrategy
from photoroast.transport.mock import MockStrategy
from photoroast.transport.relay import RelayProxyStrategy
from photoroast.transport.strategy import RequestOptions, TransportStrategy

logger = logging.getLogger(__name__)


class TransportDispatcher:
    """Ordered fallback over ``[primary, *fallbacks]``.

    Holds nothing but the strategy list; every ``send`` is independent.
    """

    def __init__(self, strategies: Sequence[TransportStrategy]) -> None:
        match list(strategies):
            case []:
                raise ValueError("TransportDispatcher needs at least one strategy")
            case [primary, *fallbacks]:
                self._primary = primary
                self._fallbacks = tuple(fallbacks)

    @property
    def strategies(self) -> tuple[TransportStrategy, ...]:
        return (self._primary, *self._fallbacks)

    async def send(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        last_response: Optional[httpx.Response] = None
        for strategy in self.strategies:
            logger.debug(MSG_STRATEGY_ATTEMPT, strategy.name)
            try:
                response = await strategy.attempt(endpoint, options)
            except Exception as exc:
                logger.warning(MSG_STRATEGY_FAILED, strategy.name, exc)
                continue
            match response.is_success:
                case True:
                    logger.debug(MSG_STRATEGY_OK, strategy.name, response.status_code)
                    return response
                case False:
                    logger.warning(MSG_STRATEGY_STATUS, strategy.name, response.status_code)
                    last_response = response
        raise TransportError(MSG_ERR_ALL_STRATEGIES, last_response=last_response)

    def strategy_info(self) -> dict:
        return {
            "current": self._primary.name,
            "fallbacks": [s.name for s in self._fallbacks],
            "available": [m for m in STRATEGY_MODES if m != STRATEGY_AUTO],
        }


# ── selection ─────────────────────────────────────────────────────────────────


def build_strategy(name: str, config: Config, http: httpx.AsyncClient) -> TransportStrategy:
    match name:
        case "direct":
            return DirectStrategy(http, config.api_base_url)
        case "relay":
            return RelayProxyStrategy(http, config.relay_url_template, config.api_base_url)
        case "backend":
            return BackendProxyStrategy(http, config.backend_proxy_url)
        case "mock":
            return MockStrategy()
        case _:
            raise ValueError(f"Unknown transport strategy: {name}")


async def _backend_alive(backend: BackendProxyStrategy) -> bool:
    try:
        return await backend.is_alive(PROBE_TIMEOUT_S)
    except httpx.HTTPError as exc:
        logger.info(MSG_PROBE_FAILED, exc)
        return False


async def select_strategies(config: Config, http: httpx.AsyncClient) -> list[TransportStrategy]:
    """Pick the strategy chain for *config*.

    ``auto`` probes the backend proxy and prefers it when alive, else the
    public relay. Configured fallbacks follow in order, minus the primary.
    """
    match config.transport_strategy:
        case "mock":
            chain = [MockStrategy()]
        case "auto":
            backend = BackendProxyStrategy(http, config.backend_proxy_url)
            primary = backend if await _backend_alive(backend) else build_strategy(STRATEGY_RELAY, config, http)
            chain = [primary] + [
                build_strategy(f, config, http) for f in config.transport_fallbacks if f != primary.name
            ]
        case name:
            chain = [build_strategy(name, config, http)] + [
                build_strategy(f, config, http) for f in config.transport_fallbacks if f != name
            ]
    logger.info(MSG_STRATEGIES_SELECTED, " → ".join(s.name for s in chain))
    return chain
