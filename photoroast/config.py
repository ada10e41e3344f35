from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from photoroast.constants import (
    BACKEND_PROXY_URL,
    COST_PER_TOKEN,
    DEFAULT_FALLBACKS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ENCODE_TIMEOUT_MS,
    HTTP_TIMEOUT_S,
    MAX_ENCODED_CHARS,
    MAX_RETRIES,
    MAX_UPLOAD_BYTES,
    OPENAI_BASE_URL,
    OPENAI_MODEL,
    RATE_LIMIT_RETRY_AFTER_S,
    RELAY_URL_TEMPLATE,
    REQUEST_SLA_MS,
    RETRY_BASE_DELAY_S,
    SERVICE_UNAVAILABLE_RETRY_AFTER_S,
    STRATEGY_AUTO,
    STRATEGY_MOCK,
    STRATEGY_MODES,
    SUPPORTED_MIME_TYPES,
)


def _split(raw: str) -> tuple[str, ...]:
    return tuple(p.strip().lower() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Config:
    api_key: Optional[str]
    model: str = OPENAI_MODEL
    api_base_url: str = OPENAI_BASE_URL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    supported_mime_types: tuple[str, ...] = SUPPORTED_MIME_TYPES
    max_encoded_chars: int = MAX_ENCODED_CHARS
    transport_strategy: str = STRATEGY_AUTO
    transport_fallbacks: tuple[str, ...] = (DEFAULT_FALLBACKS,)
    relay_url_template: str = RELAY_URL_TEMPLATE
    backend_proxy_url: str = BACKEND_PROXY_URL
    encode_timeout_ms: int = ENCODE_TIMEOUT_MS
    request_sla_ms: int = REQUEST_SLA_MS
    http_timeout_s: float = HTTP_TIMEOUT_S
    max_retries: int = MAX_RETRIES
    retry_base_delay_s: float = RETRY_BASE_DELAY_S
    rate_limit_retry_after_s: int = RATE_LIMIT_RETRY_AFTER_S
    service_unavailable_retry_after_s: int = SERVICE_UNAVAILABLE_RETRY_AFTER_S
    cost_per_token: float = COST_PER_TOKEN
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        raw_mimes = os.getenv("SUPPORTED_MIME_TYPES", ",".join(SUPPORTED_MIME_TYPES))
        raw_fallbacks = os.getenv("TRANSPORT_FALLBACKS", DEFAULT_FALLBACKS)

        return cls._validate(
            Config(
                api_key=os.getenv("OPENAI_API_KEY") or None,
                model=os.getenv("OPENAI_MODEL", OPENAI_MODEL),
                api_base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL).rstrip("/"),
                max_tokens=int(os.getenv("ROAST_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
                temperature=float(os.getenv("ROAST_TEMPERATURE", str(DEFAULT_TEMPERATURE))),
                max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
                supported_mime_types=_split(raw_mimes),
                transport_strategy=os.getenv("TRANSPORT_STRATEGY", STRATEGY_AUTO).strip().lower(),
                transport_fallbacks=_split(raw_fallbacks),
                relay_url_template=os.getenv("RELAY_URL_TEMPLATE", RELAY_URL_TEMPLATE),
                backend_proxy_url=os.getenv("BACKEND_PROXY_URL", BACKEND_PROXY_URL).rstrip("/"),
                encode_timeout_ms=int(os.getenv("ENCODE_TIMEOUT_MS", str(ENCODE_TIMEOUT_MS))),
                request_sla_ms=int(os.getenv("REQUEST_SLA_MS", str(REQUEST_SLA_MS))),
                http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", str(HTTP_TIMEOUT_S))),
                max_retries=int(os.getenv("MAX_RETRIES", str(MAX_RETRIES))),
                retry_base_delay_s=float(os.getenv("RETRY_BASE_DELAY_S", str(RETRY_BASE_DELAY_S))),
                rate_limit_retry_after_s=int(
                    os.getenv("RATE_LIMIT_RETRY_AFTER_S", str(RATE_LIMIT_RETRY_AFTER_S))
                ),
                service_unavailable_retry_after_s=int(
                    os.getenv(
                        "SERVICE_UNAVAILABLE_RETRY_AFTER_S",
                        str(SERVICE_UNAVAILABLE_RETRY_AFTER_S),
                    )
                ),
                cost_per_token=float(os.getenv("COST_PER_TOKEN", str(COST_PER_TOKEN))),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        )

    @staticmethod
    def _validate(config: "Config") -> "Config":
        match config.transport_strategy:
            case mode if mode in STRATEGY_MODES:
                pass
            case mode:
                raise ValueError(f"TRANSPORT_STRATEGY must be one of {STRATEGY_MODES}, got {mode!r}")

        match [f for f in config.transport_fallbacks if f not in STRATEGY_MODES or f == STRATEGY_AUTO]:
            case []:
                pass
            case bad:
                raise ValueError(f"TRANSPORT_FALLBACKS has unknown strategies: {', '.join(bad)}")

        match (config.api_key, config.transport_strategy):
            case (None | "", mode) if mode != STRATEGY_MOCK:
                raise ValueError("OPENAI_API_KEY must be set in .env unless TRANSPORT_STRATEGY=mock")
            case _:
                pass

        if config.max_tokens <= 0:
            raise ValueError("ROAST_MAX_TOKENS must be positive")
        if not 0.0 <= config.temperature <= 2.0:
            raise ValueError("ROAST_TEMPERATURE must be between 0 and 2")
        if config.max_upload_bytes <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be positive")
        if config.max_retries < 0:
            raise ValueError("MAX_RETRIES must not be negative")

        return config

    def summary(self) -> dict:
        """Config at a glance, without the credential."""
        return {
            "api_key_configured": bool(self.api_key),
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "transport_strategy": self.transport_strategy,
            "transport_fallbacks": list(self.transport_fallbacks),
            "request_sla_ms": self.request_sla_ms,
        }
