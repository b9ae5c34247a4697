from __future__ import annotations

import logging

import aiohttp
import pytest
from aiohttp import test_utils, web

from pystorefront._transport import AiohttpTransport
from pystorefront.config import StorefrontConfig
from pystorefront.exceptions import MalformedResponseError, NetworkError
from pystorefront.executor import RequestExecutor
from pystorefront.models.requests import HttpMethod, HttpRequest


def _app() -> web.Application:
    async def balance(request: web.Request) -> web.Response:
        auth = request.headers.get("Authorization", "")
        if auth != "Bearer tok":
            return web.Response(status=401)
        return web.json_response({"balance": 1000})

    async def echo(request: web.Request) -> web.Response:
        body = await request.text()
        return web.Response(status=201, text=body, content_type="application/json")

    async def login(request: web.Request) -> web.Response:
        await request.json()
        return web.json_response({"token": "tok", "user": {"id": 1, "username": "u"}})

    async def garbled(_request: web.Request) -> web.Response:
        return web.Response(status=200, body=b"\xff\xfe<html>oops", content_type="text/html")

    async def two_cookies(_request: web.Request) -> web.Response:
        response = web.json_response({})
        response.set_cookie("session", "a")
        response.set_cookie("theme", "dark")
        return response

    app = web.Application()
    app.router.add_get("/api/user/balance", balance)
    app.router.add_post("/api/echo", echo)
    app.router.add_post("/api/auth/login", login)
    app.router.add_get("/api/transactions", garbled)
    app.router.add_get("/api/shopee-cookies", two_cookies)
    return app


@pytest.mark.asyncio
async def test_send_returns_status_headers_and_text() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=5)

        response = await transport.send(
            HttpRequest(
                url=str(server.make_url("/api/user/balance")),
                method=HttpMethod.GET,
                headers={"authorization": "Bearer tok"},
            )
        )

    assert response.status == 200
    assert response.ok
    assert response.body_text == '{"balance": 1000}'
    assert response.headers["Content-Type"].startswith("application/json")


@pytest.mark.asyncio
async def test_send_does_not_raise_for_error_status() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=5)

        response = await transport.send(HttpRequest(url=str(server.make_url("/api/user/balance")), method=HttpMethod.GET))

    assert response.status == 401
    assert response.reason == "Unauthorized"
    assert response.body_text == ""
    assert not response.ok


@pytest.mark.asyncio
async def test_send_posts_body() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=5)

        response = await transport.send(
            HttpRequest(
                url=str(server.make_url("/api/echo")),
                method=HttpMethod.POST,
                headers={"content-type": "application/json"},
                body='{"amount":1}',
            )
        )

    assert response.status == 201
    assert response.body_text == '{"amount":1}'


@pytest.mark.asyncio
async def test_connection_failure_raises_network_error() -> None:
    async with aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=2)

        with pytest.raises(NetworkError) as exc_info:
            await transport.send(HttpRequest(url="http://127.0.0.1:1/api/users", method=HttpMethod.GET))

    assert exc_info.value.to_error_info().kind == "network"


@pytest.mark.asyncio
async def test_login_password_never_reaches_debug_log(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="pystorefront")
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = StorefrontConfig(base_url=str(server.make_url("/")), token_path=None)
        executor = RequestExecutor(config, AiohttpTransport(session, timeout=5))

        await executor.request("/api/auth/login", "POST", {"username": "alice", "password": "hunter2-secret"})

    assert "/api/auth/login" in caplog.text
    assert "alice" in caplog.text
    assert "hunter2-secret" not in caplog.text


@pytest.mark.asyncio
async def test_non_json_request_body_is_logged_by_size_only(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="pystorefront")
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=5)

        await transport.send(
            HttpRequest(url=str(server.make_url("/api/echo")), method=HttpMethod.POST, body="password=hunter2")
        )

    assert "hunter2" not in caplog.text
    assert "<body:16b>" in caplog.text


@pytest.mark.asyncio
async def test_non_utf8_success_body_is_malformed() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        config = StorefrontConfig(base_url=str(server.make_url("/")), token_path=None)
        executor = RequestExecutor(config, AiohttpTransport(session, timeout=5))

        with pytest.raises(MalformedResponseError) as exc_info:
            await executor.request("/api/transactions")

    assert exc_info.value.status == 200
    assert exc_info.value.body_prefix.endswith("<html>oops")
    assert exc_info.value.to_error_info().kind == "malformed"


@pytest.mark.asyncio
async def test_repeated_headers_are_kept() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session, timeout=5)

        response = await transport.send(HttpRequest(url=str(server.make_url("/api/shopee-cookies")), method=HttpMethod.GET))

    set_cookie = response.headers["Set-Cookie"]
    assert "session=a" in set_cookie
    assert "theme=dark" in set_cookie
