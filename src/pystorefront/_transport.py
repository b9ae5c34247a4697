"""HTTP transport over aiohttp."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

import aiohttp

from pystorefront._redact import redact_for_log, redact_json_for_log
from pystorefront.exceptions import NetworkError
from pystorefront.models.requests import HttpRequest, HttpResponse

_logger = logging.getLogger(__name__)


def _flatten_headers(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse a multidict, joining repeated fields (e.g. several Set-Cookie)."""
    flat: dict[str, str] = {}
    for name, value in items:
        flat[name] = f"{flat[name]}, {value}" if name in flat else value
    return flat


class Transport(Protocol):
    """Structural transport interface used by the executor."""

    async def send(self, request: HttpRequest) -> HttpResponse:
        ...


class AiohttpTransport:
    """Sends one request through a shared :class:`aiohttp.ClientSession`.

    The transport only moves bytes: it never raises for HTTP status codes
    and never parses bodies. Anything that prevents a response from
    arriving is raised as :class:`NetworkError`.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def send(self, request: HttpRequest) -> HttpResponse:
        _logger.debug(
            "%s %s headers=%s body=%s",
            request.method.value,
            request.url,
            redact_for_log(request.headers),
            redact_json_for_log(request.body),
        )
        try:
            async with self._http.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=self._timeout,
            ) as resp:
                # Invalid bytes decode to U+FFFD, never UnicodeDecodeError.
                text = await resp.text(errors="replace")
                response = HttpResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=_flatten_headers(resp.headers.items()),
                    body_text=text,
                )
        except aiohttp.ClientError as exc:
            raise NetworkError(f"{request.method.value} {request.url} failed: {exc}", path=request.url) from exc
        except TimeoutError as exc:
            raise NetworkError(f"{request.method.value} {request.url} timed out", path=request.url) from exc

        _logger.debug("%s %s -> %d (%d bytes)", request.method.value, request.url, response.status, len(text))
        return response
