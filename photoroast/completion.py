"""VisionCompletionClient — builds the roast request, retries, classifies, accounts."""
import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

import httpx

from photoroast.config import Config
from photoroast.constants import (
    COMPLETIONS_ENDPOINT,
    CONTENT_POLICY_CODE,
    IMAGE_DATA_URI_PREFIX,
    MSG_ERR_API,
    MSG_ERR_BAD_IMAGE,
    MSG_ERR_BAD_REQUEST,
    MSG_ERR_CONTENT_POLICY,
    MSG_ERR_EMPTY_RESPONSE,
    MSG_ERR_IMAGE_TOO_LARGE,
    MSG_ERR_INVALID_RESPONSE,
    MSG_ERR_NETWORK,
    MSG_ERR_NO_IMAGE,
    MSG_ERR_RATE_LIMIT,
    MSG_ERR_TIMEOUT,
    MSG_ERR_UNAUTHORIZED,
    MSG_ERR_UNAVAILABLE,
    MSG_GENERATE_DONE,
    MSG_GENERATE_FAIL,
    MSG_RETRYING,
)
from photoroast.encoding import EncodedImage
from photoroast.errors import ErrorKind, TransportError
from photoroast.personas import Persona, prompt_for
from photoroast.transport.strategy import RequestOptions

logger = logging.getLogger(__name__)

_TAG = re.compile(r"<[^>]*>")


class Transport(Protocol):
    async def send(self, endpoint: str, options: RequestOptions) -> httpx.Response: ...


# ── request / result types ────────────────────────────────────────────────────


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    prompt: str
    image_url: str
    max_tokens: int
    temperature: float

    def to_payload(self) -> dict:
        return {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {"type": "image_url", "image_url": {"url": self.image_url}},
                    ],
                }
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }


@dataclass(frozen=True)
class Success:
    text: str
    elapsed_ms: float

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    elapsed_ms: float
    retry_after_s: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


GenerationResult = Union[Success, Failure]


@dataclass(frozen=True)
class UsageSnapshot:
    total_requests: int
    total_tokens: int
    error_count: int
    error_rate: float
    average_response_time_ms: float
    estimated_cost: float


@dataclass
class UsageStats:
    total_requests: int = 0
    total_tokens: int = 0
    error_count: int = 0
    total_response_time_ms: float = 0.0
    estimated_cost: float = 0.0

    def record(self, elapsed_ms: float, ok: bool, tokens: int, cost_per_token: float) -> None:
        # No await in here: the event loop applies each outcome in one piece.
        self.total_requests += 1
        self.total_response_time_ms += elapsed_ms
        if ok:
            self.total_tokens += tokens
            self.estimated_cost += tokens * cost_per_token
        else:
            self.error_count += 1

    def snapshot(self) -> UsageSnapshot:
        total = self.total_requests
        return UsageSnapshot(
            total_requests=total,
            total_tokens=self.total_tokens,
            error_count=self.error_count,
            error_rate=self.error_count / total if total else 0.0,
            average_response_time_ms=self.total_response_time_ms / total if total else 0.0,
            estimated_cost=self.estimated_cost,
        )


# ── pure helpers (module-level so tests can import them directly) ──────────────


def strip_tags(text: str) -> str:
    return _TAG.sub("", text)


def is_retryable(exc: Exception) -> bool:
    """Network-level failures are retried; anything the API answered is not."""
    match exc:
        case TransportError():
            return exc.retryable
        case httpx.HTTPStatusError():
            return False
        case httpx.HTTPError():
            return True
        case _:
            return False


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_code(body: dict) -> Optional[str]:
    match body.get("error"):
        case {"code": str() as code}:
            return code
        case _:
            return None


def _total_tokens(body: dict) -> int:
    match body.get("usage"):
        case {"total_tokens": int() as tokens}:
            return tokens
        case _:
            return 0


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


# ── client ────────────────────────────────────────────────────────────────────


class VisionCompletionClient:
    """Sends one image plus a persona prompt to the completion API.

    Owns its ``UsageStats``; share an instance and the counters are shared too.
    """

    def __init__(self, config: Config, transport: Transport) -> None:
        self._config = config
        self._transport = transport
        self._usage = UsageStats()

    # ── public surface ────────────────────────────────────────────────────────

    async def generate(
        self,
        image: Union[EncodedImage, str, None],
        *,
        persona: Union[str, Persona, None] = None,
        custom_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> GenerationResult:
        start = time.perf_counter()
        data_uri = image.data_uri if isinstance(image, EncodedImage) else image

        rejection = self._check_input(data_uri, start)
        if rejection is not None:
            return rejection

        request = self.build_request(
            data_uri,
            persona=persona,
            custom_prompt=custom_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        try:
            response = await self._send_with_retry(request)
        except TransportError as exc:
            match exc.last_response:
                case None:
                    result, tokens = self._transport_failure(start), 0
                case last:
                    result, tokens = self.classify(last, _elapsed_ms(start))
        except httpx.HTTPError as exc:
            logger.debug("Transport raised %s", type(exc).__name__)
            result, tokens = self._transport_failure(start), 0
        else:
            result, tokens = self.classify(response, _elapsed_ms(start))

        self._usage.record(result.elapsed_ms, result.ok, tokens, self._config.cost_per_token)
        match result:
            case Success():
                logger.info(MSG_GENERATE_DONE, result.elapsed_ms, tokens)
            case Failure():
                logger.warning(MSG_GENERATE_FAIL, result.kind.value, result.elapsed_ms)
        return result

    def get_usage_stats(self) -> UsageSnapshot:
        return self._usage.snapshot()

    def reset_usage_stats(self) -> None:
        self._usage = UsageStats()

    # ── request construction ──────────────────────────────────────────────────

    def build_request(
        self,
        image_url: str,
        *,
        persona: Union[str, Persona, None] = None,
        custom_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> GenerationRequest:
        return GenerationRequest(
            model=self._config.model,
            prompt=custom_prompt or prompt_for(persona),
            image_url=image_url,
            max_tokens=self._config.max_tokens if max_tokens is None else max_tokens,
            temperature=self._config.temperature if temperature is None else temperature,
        )

    def _headers(self) -> dict[str, str]:
        match self._config.api_key:
            case str() as key if key:
                return {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}
            case _:
                return {"Content-Type": "application/json"}

    def _check_input(self, data_uri: Any, start: float) -> Optional[Failure]:
        match data_uri:
            case str() as s if s.startswith(IMAGE_DATA_URI_PREFIX):
                pass
            case str() if data_uri:
                return Failure(ErrorKind.INVALID_INPUT, MSG_ERR_BAD_IMAGE, _elapsed_ms(start))
            case _:
                return Failure(ErrorKind.INVALID_INPUT, MSG_ERR_NO_IMAGE, _elapsed_ms(start))
        if len(data_uri) > self._config.max_encoded_chars:
            return Failure(ErrorKind.IMAGE_TOO_LARGE, MSG_ERR_IMAGE_TOO_LARGE, _elapsed_ms(start))
        return None

    # ── dispatch ──────────────────────────────────────────────────────────────

    async def _send_with_retry(self, request: GenerationRequest) -> httpx.Response:
        options = RequestOptions(method="POST", headers=self._headers(), json=request.to_payload())
        attempts = self._config.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._transport.send(COMPLETIONS_ENDPOINT, options)
            except (TransportError, httpx.HTTPError) as exc:
                if attempt == attempts or not is_retryable(exc):
                    raise
                delay = self._config.retry_base_delay_s * 2 ** (attempt - 1)
                logger.warning(MSG_RETRYING, attempt, attempts, delay)
                await asyncio.sleep(delay)
        raise TransportError(MSG_ERR_NETWORK)

    # ── classification ────────────────────────────────────────────────────────

    def classify(self, response: httpx.Response, elapsed_ms: float) -> tuple[GenerationResult, int]:
        """Map an HTTP answer to a result plus the tokens it reported."""
        body = _json_or_empty(response)
        match response.status_code:
            case status if 200 <= status < 300:
                return self._parse_completion(body, elapsed_ms)
            case 429:
                failure = Failure(
                    ErrorKind.RATE_LIMIT,
                    MSG_ERR_RATE_LIMIT,
                    elapsed_ms,
                    retry_after_s=self._config.rate_limit_retry_after_s,
                )
            case 401:
                failure = Failure(ErrorKind.API_ERROR, MSG_ERR_UNAUTHORIZED, elapsed_ms)
            case 400 if _error_code(body) == CONTENT_POLICY_CODE:
                failure = Failure(ErrorKind.CONTENT_POLICY, MSG_ERR_CONTENT_POLICY, elapsed_ms)
            case 400:
                failure = Failure(ErrorKind.API_ERROR, MSG_ERR_BAD_REQUEST, elapsed_ms)
            case 503:
                failure = Failure(
                    ErrorKind.SERVICE_UNAVAILABLE,
                    MSG_ERR_UNAVAILABLE,
                    elapsed_ms,
                    retry_after_s=self._config.service_unavailable_retry_after_s,
                )
            case _:
                failure = Failure(ErrorKind.API_ERROR, MSG_ERR_API, elapsed_ms)
        return failure, 0

    def _parse_completion(self, body: dict, elapsed_ms: float) -> tuple[GenerationResult, int]:
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return Failure(ErrorKind.INVALID_RESPONSE, MSG_ERR_INVALID_RESPONSE, elapsed_ms), 0

        match content:
            case str() if content:
                pass
            case _:
                return Failure(ErrorKind.INVALID_RESPONSE, MSG_ERR_INVALID_RESPONSE, elapsed_ms), 0

        text = strip_tags(content.strip()).strip()
        match text:
            case "":
                return Failure(ErrorKind.EMPTY_RESPONSE, MSG_ERR_EMPTY_RESPONSE, elapsed_ms), 0
            case _:
                return Success(text=text, elapsed_ms=elapsed_ms), _total_tokens(body)

    def _transport_failure(self, start: float) -> Failure:
        elapsed_ms = _elapsed_ms(start)
        sla_ms = self._config.request_sla_ms
        match elapsed_ms > sla_ms:
            case True:
                return Failure(ErrorKind.TIMEOUT, MSG_ERR_TIMEOUT % (sla_ms // 1000), elapsed_ms)
            case False:
                return Failure(ErrorKind.NETWORK_ERROR, MSG_ERR_NETWORK, elapsed_ms)
