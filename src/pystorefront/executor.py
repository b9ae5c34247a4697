"""Authenticated request executor.

Performs exactly one network call per :meth:`RequestExecutor.execute` and
normalizes the outcome:

* non-2xx            -> :class:`HttpError` (body text or reason phrase)
* 2xx, empty body    -> ``ApiResponse(empty=True)``
* 2xx, JSON body     -> ``ApiResponse(data=...)``
* 2xx, anything else -> :class:`MalformedResponseError`

The executor never retries and never touches the cache; cache coherence
after mutations is the caller's job (see :mod:`pystorefront.client`).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from pystorefront._constants import MALFORMED_BODY_PREFIX
from pystorefront._redact import redact_for_log
from pystorefront._transport import Transport
from pystorefront.config import StorefrontConfig
from pystorefront.credentials import AnonymousCredentials, CredentialSource
from pystorefront.exceptions import HttpError, MalformedResponseError
from pystorefront.models.requests import (
    ApiRequest,
    ApiResponse,
    HttpMethod,
    HttpRequest,
    HttpResponse,
    UnauthorizedBehavior,
)

_logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


def _encode_body(body: Any) -> str:
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True)
    return json.dumps(body, separators=(",", ":"))


class RequestExecutor:
    """Executes :class:`ApiRequest` objects against the console API."""

    def __init__(
        self,
        config: StorefrontConfig,
        transport: Transport,
        credentials: CredentialSource | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._credentials = credentials or AnonymousCredentials()

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _build_headers(self, *, has_body: bool) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }
        if has_body:
            headers["content-type"] = "application/json"
        # Read per call: the token may change between requests.
        token = self._credentials.get_token()
        if token:
            headers["authorization"] = f"Bearer {token}"
        return headers

    async def execute(
        self,
        request: ApiRequest,
        *,
        on_unauthorized: UnauthorizedBehavior = UnauthorizedBehavior.RAISE,
    ) -> ApiResponse:
        """Send *request* and return its normalized response.

        Raises
        ------
        HttpError
            Non-2xx status.
        MalformedResponseError
            2xx status with a body that is not JSON.
        NetworkError
            No response was received.
        """
        has_body = request.body is not None
        http_request = HttpRequest(
            url=self._url(request.path),
            method=request.method,
            headers=self._build_headers(has_body=has_body),
            body=_encode_body(request.body) if has_body else None,
        )

        response = await self._transport.send(http_request)

        if response.status == 401 and on_unauthorized == UnauthorizedBehavior.RETURN_NONE:
            return ApiResponse(path=request.path, method=request.method, status=response.status, empty=True)

        if not response.ok:
            message = response.body_text or response.reason or HttpError.reason_for(response.status)
            raise HttpError(response.status, message, path=request.path)

        if not response.body_text:
            return ApiResponse(path=request.path, method=request.method, status=response.status, empty=True)

        return ApiResponse(
            path=request.path,
            method=request.method,
            status=response.status,
            data=self._decode(request, response),
        )

    def _decode(self, request: ApiRequest, response: HttpResponse) -> Any:
        try:
            return json.loads(response.body_text)
        except json.JSONDecodeError as exc:
            prefix = response.body_text[:MALFORMED_BODY_PREFIX]
            _logger.error(
                "Undecodable %d response for %s %s headers=%s body=%r",
                response.status,
                request.method.value,
                request.path,
                redact_for_log(response.headers),
                prefix,
            )
            raise MalformedResponseError(
                response.status,
                prefix,
                headers=response.headers,
                path=request.path,
            ) from exc

    async def request(
        self,
        path: str,
        method: HttpMethod | str = HttpMethod.GET,
        body: Any = None,
        *,
        on_unauthorized: UnauthorizedBehavior = UnauthorizedBehavior.RAISE,
    ) -> ApiResponse:
        """Build and execute an :class:`ApiRequest` in one step."""
        return await self.execute(ApiRequest(path=path, method=method, body=body), on_unauthorized=on_unauthorized)

    def loader(
        self,
        path: str,
        *,
        on_unauthorized: UnauthorizedBehavior = UnauthorizedBehavior.RAISE,
    ) -> Loader:
        """Return a cache loader that GETs *path* and yields its data."""

        async def _load() -> Any:
            response = await self.request(path, on_unauthorized=on_unauthorized)
            return response.data

        return _load
