"""Cache entry models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


# Nothing ever goes back to IDLE. SUCCESS -> SUCCESS and SUCCESS -> ERROR
# only happen for silent background refreshes.
ALLOWED_TRANSITIONS: dict[QueryStatus, frozenset[QueryStatus]] = {
    QueryStatus.IDLE: frozenset({QueryStatus.LOADING}),
    QueryStatus.LOADING: frozenset({QueryStatus.SUCCESS, QueryStatus.ERROR}),
    QueryStatus.SUCCESS: frozenset({QueryStatus.LOADING, QueryStatus.SUCCESS, QueryStatus.ERROR}),
    QueryStatus.ERROR: frozenset({QueryStatus.LOADING}),
}


class ErrorInfo(BaseModel):
    """Why the last fetch of an entry failed."""

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    status: int | None = None

    @classmethod
    def unexpected(cls, exc: BaseException) -> ErrorInfo:
        return cls(kind="unexpected", message=f"{type(exc).__name__}: {exc}")


class QueryOptions(BaseModel):
    """Per-query freshness settings.

    ``stale_after`` of ``None`` means "use the store default".
    ``refresh_interval`` enables silent polling while the query is observed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    stale_after: float | None = Field(default=None, ge=0)
    refresh_interval: float | None = Field(default=None, gt=0)


class CacheEntry(BaseModel):
    """State of one cached query.

    Instances handed out by the store are copies; changing them has no
    effect on the cache.
    """

    model_config = ConfigDict(extra="forbid")

    key: tuple[Any, ...]
    data: Any = None
    has_data: bool = False
    status: QueryStatus = QueryStatus.IDLE
    error: ErrorInfo | None = None
    last_fetched_at: float | None = None
    stale_after: float
    is_invalidated: bool = False
    is_fetching: bool = False

    def is_fresh(self, now: float) -> bool:
        if self.status != QueryStatus.SUCCESS or self.is_invalidated or self.last_fetched_at is None:
            return False
        return (now - self.last_fetched_at) < self.stale_after
