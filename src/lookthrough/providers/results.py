"""Tagged result type returned by every provider call."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ProviderStatus(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"


@dataclass(frozen=True)
class ProviderResult(Generic[T]):
    """
    Outcome of one provider call, decided before any caching decision.

    RATE_LIMITED covers both HTTP 429 and 200 responses whose body carries a
    rate-limit marker. ERROR covers non-2xx, transport failures, timeouts and
    payloads with no usable data.
    """

    status: ProviderStatus
    record: Optional[T] = None
    detail: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.status == ProviderStatus.OK

    @property
    def is_rate_limited(self) -> bool:
        return self.status == ProviderStatus.RATE_LIMITED

    @classmethod
    def ok(cls, record: T) -> "ProviderResult[T]":
        return cls(status=ProviderStatus.OK, record=record)

    @classmethod
    def rate_limited(cls, detail: Optional[str] = None) -> "ProviderResult[T]":
        return cls(status=ProviderStatus.RATE_LIMITED, detail=detail)

    @classmethod
    def error(cls, detail: str) -> "ProviderResult[T]":
        return cls(status=ProviderStatus.ERROR, detail=detail)
