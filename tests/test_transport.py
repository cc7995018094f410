from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from teslapoll._transport import HttpTransport
from teslapoll.classify import FailureClass, classify
from teslapoll.exceptions import TransportError


async def _vehicle_data(request: web.Request) -> web.Response:
    if request.headers.get("Authorization") != "Bearer tok":
        return web.json_response({"error": "invalid bearer token"}, status=401)
    return web.json_response({"response": {"state": "online"}})


async def _asleep(_request: web.Request) -> web.Response:
    return web.json_response(
        {"response": None, "error": "vehicle unavailable: vehicle is offline or asleep", "error_description": ""},
        status=408,
    )


async def _token(request: web.Request) -> web.Response:
    form = await request.post()
    return web.json_response({"access_token": "a", "echo_grant": form.get("grant_type")})


async def _empty(_request: web.Request) -> web.Response:
    return web.Response(status=200, text="")


async def _list_body(_request: web.Request) -> web.Response:
    return web.json_response([1, 2, 3])


async def _undecodable(_request: web.Request) -> web.Response:
    return web.Response(
        status=408,
        body=b'{"error":"vehicle unavailable \xff"}',
        content_type="application/json",
        charset="utf-8",
    )


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(1)
    return web.json_response({})


@pytest_asyncio.fixture
async def server() -> AsyncIterator[test_utils.TestServer]:
    app = web.Application()
    app.router.add_get("/api/1/vehicles/1/vehicle_data", _vehicle_data)
    app.router.add_get("/api/1/vehicles/2/vehicle_data", _asleep)
    app.router.add_post("/oauth2/v3/token", _token)
    app.router.add_post("/api/1/vehicles/1/wake_up", _empty)
    app.router.add_get("/api/1/list", _list_body)
    app.router.add_get("/api/1/slow", _slow)
    app.router.add_get("/api/1/vehicles/3/vehicle_data", _undecodable)
    async with test_utils.TestServer(app) as test_server:
        yield test_server


@pytest_asyncio.fixture
async def transport() -> AsyncIterator[HttpTransport]:
    async with aiohttp.ClientSession() as session:
        yield HttpTransport(session, timeout=5)


@pytest.mark.asyncio
async def test_bearer_request_returns_json(server: test_utils.TestServer, transport: HttpTransport) -> None:
    data = await transport.request_json("GET", str(server.make_url("/api/1/vehicles/1/vehicle_data")), token="tok")
    assert data == {"response": {"state": "online"}}


@pytest.mark.asyncio
async def test_error_status_carries_provider_text(server: test_utils.TestServer, transport: HttpTransport) -> None:
    with pytest.raises(TransportError) as excinfo:
        await transport.request_json("GET", str(server.make_url("/api/1/vehicles/2/vehicle_data")), token="tok")

    assert excinfo.value.status_code == 408
    assert excinfo.value.error_text == "vehicle unavailable: vehicle is offline or asleep"
    assert classify(excinfo.value) is FailureClass.UNAVAILABLE


@pytest.mark.asyncio
async def test_unauthorized_is_classified_as_auth(server: test_utils.TestServer, transport: HttpTransport) -> None:
    with pytest.raises(TransportError) as excinfo:
        await transport.request_json("GET", str(server.make_url("/api/1/vehicles/1/vehicle_data")), token="bad")
    assert classify(excinfo.value) is FailureClass.AUTH


@pytest.mark.asyncio
async def test_form_post(server: test_utils.TestServer, transport: HttpTransport) -> None:
    data = await transport.request_json(
        "POST",
        str(server.make_url("/oauth2/v3/token")),
        form={"grant_type": "refresh_token", "refresh_token": "r"},
    )
    assert data == {"access_token": "a", "echo_grant": "refresh_token"}


@pytest.mark.asyncio
async def test_empty_body_is_empty_dict(server: test_utils.TestServer, transport: HttpTransport) -> None:
    data = await transport.request_json("POST", str(server.make_url("/api/1/vehicles/1/wake_up")), json_body={})
    assert data == {}


@pytest.mark.asyncio
async def test_non_object_body_is_transport_error(server: test_utils.TestServer, transport: HttpTransport) -> None:
    with pytest.raises(TransportError, match="Unexpected JSON shape"):
        await transport.request_json("GET", str(server.make_url("/api/1/list")))


@pytest.mark.asyncio
async def test_timeout_is_flagged(server: test_utils.TestServer) -> None:
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=0.05)
        with pytest.raises(TransportError) as excinfo:
            await transport.request_json("GET", str(server.make_url("/api/1/slow")))

    assert excinfo.value.timed_out is True
    assert classify(excinfo.value) is FailureClass.UNAVAILABLE


@pytest.mark.asyncio
async def test_undecodable_error_body_is_still_classified(
    server: test_utils.TestServer, transport: HttpTransport
) -> None:
    with pytest.raises(TransportError) as excinfo:
        await transport.request_json("GET", str(server.make_url("/api/1/vehicles/3/vehicle_data")), token="tok")

    assert excinfo.value.status_code == 408
    assert excinfo.value.error_text.startswith("vehicle unavailable")
    assert classify(excinfo.value) is FailureClass.UNAVAILABLE
