"""Custom exception hierarchy for pystorefront."""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pystorefront.cache.entry import ErrorInfo


class StorefrontError(Exception):
    """Base exception for all pystorefront errors."""


class StorefrontConfigError(StorefrontError):
    """Invalid or missing configuration."""


class ClientNotInitializedError(StorefrontError):
    """Client used outside of its ``async with`` block."""


class StorefrontAuthError(StorefrontError):
    """Login succeeded at the HTTP level but returned no usable token."""


class StorefrontRequestError(StorefrontError):
    """A single request failed.

    Subclasses are terminal per-call failures: the executor never retries
    them. The cache store records them on the entry via :meth:`to_error_info`.
    """

    kind: str = "unexpected"

    def __init__(self, message: str, *, path: str = "", status: int | None = None) -> None:
        self.path = path
        self.status = status
        super().__init__(message)

    def to_error_info(self) -> ErrorInfo:
        from pystorefront.cache.entry import ErrorInfo

        return ErrorInfo(kind=self.kind, message=str(self), status=self.status)


class HttpError(StorefrontRequestError):
    """Server answered with a non-2xx status.

    ``message`` is the response body verbatim, or the status reason phrase
    when the body is empty.
    """

    kind = "http"

    def __init__(self, status: int, message: str, *, path: str = "") -> None:
        self.message = message
        super().__init__(f"{status}: {message}", path=path, status=status)

    @staticmethod
    def reason_for(status: int) -> str:
        """Generic description of *status* used when the body is empty."""
        try:
            return HTTPStatus(status).phrase
        except ValueError:
            return f"HTTP {status}"


class MalformedResponseError(StorefrontRequestError):
    """2xx response whose body could not be decoded.

    Usually an HTML error page or a misrouted request slipping past the
    status check.
    """

    kind = "malformed"

    def __init__(
        self,
        status: int,
        body_prefix: str,
        *,
        headers: Mapping[str, str] | None = None,
        path: str = "",
    ) -> None:
        self.headers = dict(headers or {})
        self.body_prefix = body_prefix
        super().__init__(
            f"Invalid JSON response from {path or 'server'}: {body_prefix}...",
            path=path,
            status=status,
        )


class NetworkError(StorefrontRequestError):
    """Transport failure before any response arrived (DNS, refused, timeout)."""

    kind = "network"
