"""Endpoint adapters that turn handler results into exactly one response.

A handler is called as ``handler(request, response)`` and may return any of:

* a plain value, serialized and sent with status 200;
* a Problem, sent to the user as a classified error;
* a Streamable, piped to the client as it is produced;
* a LazyUnit, whose thunk is invoked and its outcome resolved in turn;
* an awaitable (including the coroutine of an ``async def`` handler) that
  settles into any of the above.

``None`` anywhere in that chain is an internal empty-response problem.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.requests import Request
from starlette.responses import Response

from central.context import ResponseContext
from central.errors import send_error
from central.logging_config import get_endpoint_logger
from central.openrosa import (
    OPENROSA_VERSION,
    XML_CONTENT_TYPE,
    OpenRosaMessage,
    normalize_date_header,
    openrosa_headers,
    parse_http_date,
)
from central.problem import OpenRosaProblem, Problem
from central.result import Deferred, LazyUnit, Streamable, Value, as_result
from central.serialize import serialize

log = get_endpoint_logger()

Handler = Callable[[Request, ResponseContext], Any]
FailureContinuation = Callable[[Any, Request, ResponseContext], Response]
Route = Callable[[Request], Awaitable[Response]]


def finalize(
    success: Callable[[Any], Response],
    failure: Callable[[Any], Response],
    request: Request,
    response: ResponseContext,
) -> Callable[[Any], Awaitable[Response]]:
    """Build a resolver that reduces a handler result to success or failure.

    Intermediate products (lazy units, awaitables) are resolved repeatedly
    until a terminal value is reached. Exactly one of ``success`` or
    ``failure`` is called per resolution, except for streams, which produce
    their own response.
    """

    async def finalizer(maybe_result: Any) -> Response:
        match as_result(maybe_result):
            case Streamable() as streamable:
                log.debug("stream_started", path=request.url.path)
                return response.stream(streamable)

            case LazyUnit(thunk=thunk):
                try:
                    deferred = thunk()
                except Exception as exc:
                    return failure(exc)
                return await finalizer(deferred)

            case Deferred(awaitable=awaitable):
                try:
                    resolved = await awaitable
                except Exception as exc:
                    # rejections are forwarded as-is, never re-classified
                    return failure(exc)
                return await finalizer(resolved)

            case Problem() as problem:
                return failure(problem)

            case Value(payload=payload):
                return success(payload)

    return finalizer


async def _run(
    handler: Handler,
    request: Request,
    response: ResponseContext,
    success: Callable[[Any], Response],
    failure: Callable[[Any], Response],
) -> Response:
    try:
        result = handler(request, response)
    except Exception as exc:
        return failure(exc)
    return await finalize(success, failure, request, response)(result)


def endpoint(handler: Handler, *, on_failure: FailureContinuation | None = None) -> Route:
    """Wrap a handler as a JSON API route."""
    next_ = on_failure or send_error

    async def route(request: Request) -> Response:
        response = ResponseContext()

        def failure(error: Any) -> Response:
            return next_(error, request, response)

        def success(result: Any) -> Response:
            # nothing is sent until serialization succeeds
            try:
                body = serialize(result)
            except Exception as exc:
                return failure(exc)
            if not response.has_header("content-type"):
                response.type("application/json")
            return response.send(200, body)

        return await _run(handler, request, response, success, failure)

    return route


def openrosa_endpoint(
    handler: Handler, *, on_failure: FailureContinuation | None = None
) -> Route:
    """Wrap a handler as an OpenRosa route.

    The handler must resolve to an OpenRosaMessage. Problems raised along the
    way are rendered as OpenRosa XML rather than JSON.
    """
    next_ = on_failure or send_error

    async def route(request: Request) -> Response:
        response = ResponseContext()

        def failure(error: Any) -> Response:
            if isinstance(error, Problem):
                error = OpenRosaProblem(error)
            return next_(error, request, response)

        # Rejected requests still need these headers.
        for name, value in openrosa_headers().items():
            response.set_header(name, value)
        response.type(XML_CONTENT_TYPE)

        version = request.headers.get("x-openrosa-version")
        if version != OPENROSA_VERSION:
            log.info("openrosa_header_rejected", field="X-OpenRosa-Version", value=version)
            return failure(Problem.user.invalid_header(field="X-OpenRosa-Version", value=version))

        date = request.headers.get("date")
        if parse_http_date(normalize_date_header(date)) is None:
            log.info("openrosa_header_rejected", field="Date", value=date)
            return failure(Problem.user.invalid_header(field="Date", value=date))

        def success(result: OpenRosaMessage) -> Response:
            try:
                code, body = result.code, result.body
            except Exception as exc:
                return failure(exc)
            return response.send(code, body)

        return await _run(handler, request, response, success, failure)

    return route
