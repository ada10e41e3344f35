"""Error kinds shared by every stage, and the transport's internal exception."""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx


class ErrorKind(str, Enum):
    FILE_SIZE = "file_size"
    FILE_FORMAT = "file_format"
    FILE_INVALID = "file_invalid"
    INVALID_INPUT = "invalid_input"
    CONVERSION_FAILED = "conversion_failed"
    READ_ERROR = "read_error"
    TIMEOUT = "timeout"
    IMAGE_TOO_LARGE = "image_too_large"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_RESPONSE = "empty_response"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    CONTENT_POLICY = "content_policy"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class ErrorDetail:
    kind: ErrorKind
    message: str
    timestamp: float = field(default_factory=time.time)


class TransportError(Exception):
    """Every transport strategy failed.

    ``last_response`` is the last HTTP answer any strategy got back, or None
    when none of them reached a server.
    """

    def __init__(self, message: str, last_response: Optional[httpx.Response] = None) -> None:
        super().__init__(message)
        self.last_response = last_response

    @property
    def retryable(self) -> bool:
        return self.last_response is None
