import asyncio
import json
import logging
import re
from collections.abc import Mapping
from typing import Any

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .errors import BodyReadError, BuildError, RequestTimeoutError, TransportError
from .models import Response, TargetSpec
from .utils import DEFAULT_HEADERS, elapsed_ms, now

logger = logging.getLogger(__name__)

# RFC 7230 token
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

DEBUG_BODY_PREVIEW = 1024


# ────────────────────────────────
# Request Building
# ────────────────────────────────


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def build_url(url: str, params: Mapping[str, Any] | None = None) -> URL:
    try:
        parsed = URL(url)
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise BuildError(f"invalid URL {url!r}: expected an absolute http(s) URL")
        if params:
            parsed = parsed.extend_query({k: _query_value(v) for k, v in params.items()})
    except (TypeError, ValueError) as e:
        raise BuildError(f"invalid URL {url!r}: {e}") from e
    return parsed


def encode_body(data: Any) -> tuple[bytes | None, str | None]:
    """Returns (payload, default content type). Strings go out verbatim."""
    if data is None:
        return None, None
    if isinstance(data, str):
        return data.encode("utf-8"), None
    try:
        return json.dumps(data).encode("utf-8"), "application/json"
    except (TypeError, ValueError) as e:
        raise BuildError(f"cannot serialize request body: {e}") from e


def resolve_method(method: str | None) -> str:
    method = (method or "").strip().upper() or "GET"
    if not _METHOD_RE.match(method):
        raise BuildError(f"invalid HTTP method {method!r}")
    return method


def merge_headers(
    overrides: Mapping[str, str] | None, content_type: str | None = None
) -> CIMultiDict:
    headers: CIMultiDict = CIMultiDict(DEFAULT_HEADERS)
    if content_type:
        headers["Content-Type"] = content_type
    for k, v in (overrides or {}).items():
        headers[k] = v
    return headers


# ────────────────────────────────
# HTTP Execution
# ────────────────────────────────


class RequestExecutor:
    """Sends one request per call through a shared session."""

    def __init__(self, session: aiohttp.ClientSession, debug: bool = False) -> None:
        self.session = session
        self.debug = debug

    async def execute(self, target: TargetSpec) -> Response:
        url = build_url(target.url, target.params)
        body, content_type = encode_body(target.data)
        method = resolve_method(target.method)
        headers = merge_headers(target.headers, content_type)

        start = now()
        try:
            resp = await self.session.request(method, url, data=body, headers=headers)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError("request timed out", elapsed_ms(start)) from e
        except aiohttp.InvalidURL as e:
            raise BuildError(f"invalid URL {target.url!r}: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(_describe(e), elapsed_ms(start)) from e
        except ValueError as e:
            # aiohttp rejects malformed header values while preparing the request
            raise BuildError(f"invalid request: {e}") from e

        try:
            content = await resp.read()
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError("request timed out", elapsed_ms(start)) from e
        except aiohttp.ClientError as e:
            raise BodyReadError(
                f"failed to read response body: {_describe(e)}", elapsed_ms(start)
            ) from e
        finally:
            resp.release()
        latency = elapsed_ms(start)

        if self.debug:
            logger.debug(
                f"{method} {url} -> {resp.status} in {latency:.1f}ms, "
                f"body={content[:DEBUG_BODY_PREVIEW]!r}"
            )
        return Response(status=resp.status, body=content, elapsed_ms=latency)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
