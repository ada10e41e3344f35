"""TransportStrategy — abstract base for the ways of reaching the completion API."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(frozen=True)
class RequestOptions:
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None


class TransportStrategy(ABC):
    name: str = "abstract"

    @abstractmethod
    async def attempt(self, endpoint: str, options: RequestOptions) -> httpx.Response:
        """Send one request for *endpoint*. Raises on network failure."""
        ...
