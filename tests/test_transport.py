from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from aiohttp.typedefs import Handler

from pypond._transport import FetchResult, HttpFetcher
from pypond.exceptions import PondDecodeError, PondTimeoutError, PondTransportError
from pypond.models.payload import RawPayload


def _app(handler: Handler) -> web.Application:
    app = web.Application()
    app.router.add_get("/", handler)
    return app


async def _fetch_from(handler: Handler, *, timeout: float = 2.0) -> FetchResult:
    async with TestServer(_app(handler)) as server, aiohttp.ClientSession() as session:
        return await HttpFetcher(session).fetch(str(server.make_url("/")), timeout)


@pytest.mark.asyncio
async def test_fetch_decodes_payload() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response(
            {
                "airtemperature": "21.7",
                "airhumidity": 61,
                "soilhumidity": "--",
                "waterlevel": 42.5,
                "watertemperature": None,
                "firmware": "1.2",
            }
        )

    result = await _fetch_from(handler)

    assert result.ok
    payload = result.payload
    assert isinstance(payload, RawPayload)
    assert payload.airtemperature == 21.7
    assert payload.airhumidity == 61.0
    assert payload.soilhumidity is None
    assert payload.waterlevel == 42.5
    assert payload.watertemperature is None
    assert payload.raw["firmware"] == "1.2"


@pytest.mark.asyncio
async def test_non_200_status_is_transport_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=503, text="sensor busy")

    result = await _fetch_from(handler)

    assert not result.ok
    assert isinstance(result.error, PondTransportError)
    assert result.error.status_code == 503
    assert "sensor busy" in str(result.error)


@pytest.mark.asyncio
async def test_invalid_json_is_decode_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(text="<html>oops</html>", content_type="text/html")

    result = await _fetch_from(handler)

    assert isinstance(result.error, PondDecodeError)


@pytest.mark.asyncio
async def test_non_object_json_is_decode_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response([1, 2, 3])

    result = await _fetch_from(handler)

    assert isinstance(result.error, PondDecodeError)
    assert "list" in str(result.error)


@pytest.mark.asyncio
async def test_slow_endpoint_times_out() -> None:
    release = asyncio.Event()

    async def handler(request: web.Request) -> web.Response:
        await release.wait()
        return web.json_response({})

    async with TestServer(_app(handler)) as server, aiohttp.ClientSession() as session:
        result = await HttpFetcher(session).fetch(str(server.make_url("/")), 0.2)
        release.set()

    assert isinstance(result.error, PondTimeoutError)


@pytest.mark.asyncio
async def test_connection_refused_is_transport_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({})

    async with TestServer(_app(handler)) as server:
        url = str(server.make_url("/"))

    async with aiohttp.ClientSession() as session:
        result = await HttpFetcher(session).fetch(url, 1.0)

    assert isinstance(result.error, PondTransportError)
    assert result.error.status_code is None


def test_fetch_result_requires_exactly_one_outcome() -> None:
    with pytest.raises(ValueError):
        FetchResult()
    with pytest.raises(ValueError):
        FetchResult(payload=RawPayload(), error=PondDecodeError("x"))


@pytest.mark.asyncio
async def test_accepted_status_other_than_200_is_transport_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=202, text="queued")

    result = await _fetch_from(handler)

    assert isinstance(result.error, PondTransportError)
    assert result.error.status_code == 202


@pytest.mark.asyncio
async def test_out_of_range_number_is_missing_field() -> None:
    huge = "1" + "0" * 400

    async def handler(request: web.Request) -> web.Response:
        return web.Response(
            text=f'{{"waterlevel": {huge}, "airhumidity": 40}}',
            content_type="application/json",
        )

    result = await _fetch_from(handler)

    assert result.ok
    assert result.payload is not None
    assert result.payload.waterlevel is None
    assert result.payload.airhumidity == 40.0


@pytest.mark.asyncio
async def test_integer_beyond_digit_limit_is_decode_error() -> None:
    huge = "1" * 5000

    async def handler(request: web.Request) -> web.Response:
        return web.Response(text=f'{{"waterlevel": {huge}}}', content_type="application/json")

    result = await _fetch_from(handler)

    assert isinstance(result.error, PondDecodeError)


@pytest.mark.asyncio
async def test_raw_key_in_body_does_not_break_decoding() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"raw": 5, "airhumidity": 40})

    result = await _fetch_from(handler)

    assert result.ok
    assert result.payload is not None
    assert result.payload.airhumidity == 40.0
    assert result.payload.raw == {"raw": 5, "airhumidity": 40}
