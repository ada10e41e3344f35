"""RoastService — the surface the presentation layer calls into."""
from typing import Any, Optional, Union

import httpx

from photoroast.completion import GenerationResult, UsageSnapshot, VisionCompletionClient
from photoroast.config import Config
from photoroast.encoding import EncodedImage, EncodingOutcome, ImageAnalysis, ImageEncoder, ImageFile, analyze_image
from photoroast.personas import Persona
from photoroast.transport.dispatcher import TransportDispatcher, select_strategies
from photoroast.validation import ValidationOutcome, validate


class RoastService:
    """validate → encode → generate, plus read-only usage stats.

    Built once at the composition root; nothing here is module-global.
    """

    def __init__(
        self,
        config: Config,
        dispatcher: TransportDispatcher,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._http = http
        self._encoder = ImageEncoder(timeout_ms=config.encode_timeout_ms)
        self._client = VisionCompletionClient(config, dispatcher)

    def validate(self, file: Any) -> ValidationOutcome:
        return validate(
            file,
            max_bytes=self._config.max_upload_bytes,
            supported_types=self._config.supported_mime_types,
        )

    def analyze(self, file: ImageFile) -> ImageAnalysis:
        return analyze_image(file)

    async def encode(self, file: Optional[ImageFile], timeout_ms: Optional[int] = None) -> EncodingOutcome:
        return await self._encoder.encode(file, timeout_ms=timeout_ms)

    async def generate(
        self,
        image: Union[EncodedImage, str, None],
        *,
        persona: Union[str, Persona, None] = None,
        custom_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> GenerationResult:
        return await self._client.generate(
            image,
            persona=persona,
            custom_prompt=custom_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    def get_usage_stats(self) -> UsageSnapshot:
        return self._client.get_usage_stats()

    def reset_usage_stats(self) -> None:
        self._client.reset_usage_stats()

    def encoder_metrics(self) -> dict:
        return self._encoder.metrics()

    def strategy_info(self) -> dict:
        return self._dispatcher.strategy_info()

    async def aclose(self) -> None:
        match self._http:
            case None:
                pass
            case http:
                await http.aclose()


async def build_service(config: Config, http: Optional[httpx.AsyncClient] = None) -> RoastService:
    """Composition root: one HTTP client, one strategy chain, one service.

    A caller-supplied *http* client stays owned by the caller.
    """
    owned = http is None
    client = http or httpx.AsyncClient(timeout=config.http_timeout_s)
    strategies = await select_strategies(config, client)
    return RoastService(config, TransportDispatcher(strategies), http=client if owned else None)
