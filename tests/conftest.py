import asyncio

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from barrage.executor import RequestExecutor
from barrage.models import TargetSpec


async def _ok(request):
    return web.json_response({"code": 200, "message": "ok", "data": {"id": 7, "flag": None}})


async def _error(request):
    return web.json_response({"code": 500, "message": "boom"}, status=500)


async def _slow(request):
    await asyncio.sleep(float(request.query.get("delay", "0.5")))
    return web.json_response({"code": 200, "message": "ok"})


async def _plain(request):
    return web.Response(text="definitely not json")


async def _echo(request):
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "query": dict(request.query),
            "headers": {k.lower(): v for k, v in request.headers.items()},
            "body": body.decode("utf-8"),
        }
    )


async def _truncated(request):
    # promises 100 bytes, sends 8, then drops the connection
    resp = web.StreamResponse(headers={"Content-Length": "100"})
    await resp.prepare(request)
    await resp.write(b"12345678")
    request.transport.close()
    return resp


async def _stalled(request):
    resp = web.StreamResponse(headers={"Content-Length": "100"})
    await resp.prepare(request)
    await resp.write(b"12345678")
    await asyncio.sleep(float(request.query.get("delay", "0.6")))
    if request.transport is not None:
        request.transport.close()
    return resp


def make_app() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/ok", _ok)
    app.router.add_route("*", "/error", _error)
    app.router.add_route("*", "/slow", _slow)
    app.router.add_route("*", "/plain", _plain)
    app.router.add_route("*", "/echo", _echo)
    app.router.add_route("*", "/truncated", _truncated)
    app.router.add_route("*", "/stalled", _stalled)
    return app


@pytest_asyncio.fixture
async def server():
    srv = TestServer(make_app())
    await srv.start_server()
    try:
        yield srv
    finally:
        await srv.close()


@pytest_asyncio.fixture
async def session():
    timeout = aiohttp.ClientTimeout(total=2.0)
    async with aiohttp.ClientSession(timeout=timeout) as s:
        yield s


@pytest.fixture
def executor(session):
    return RequestExecutor(session)


@pytest.fixture
def target_for(server):
    def make(path: str, **kwargs) -> TargetSpec:
        return TargetSpec(url=str(server.make_url(path)), **kwargs)

    return make
