"""Response staging and release-aware streaming for the endpoint adapters."""

from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import Any

from starlette.concurrency import iterate_in_threadpool
from starlette.datastructures import MutableHeaders
from starlette.responses import Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from central.result import Streamable


class ReleasingStream:
    """Wrap a chunk source so its release hook fires once if it is abandoned.

    Running the source to completion never calls ``release``. Stopping early
    (client disconnect, cancellation, a failing source) calls it exactly once,
    no matter how many paths report the stop.
    """

    def __init__(
        self,
        source: AsyncIterable[bytes] | Iterable[bytes],
        release: Callable[[], Any] | None = None,
    ) -> None:
        self._source = source
        self._release = release
        self.finished = False
        self.released = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if isinstance(self._source, AsyncIterable):
            chunks = self._source
        else:
            chunks = iterate_in_threadpool(iter(self._source))
        try:
            async for chunk in chunks:
                yield chunk
            self.finished = True
        finally:
            if not self.finished:
                self.close()

    def close(self) -> None:
        """Release the source unless it already finished or was released."""
        if self.finished or self.released or self._release is None:
            return
        self.released = True
        self._release()


class ReleasingStreamingResponse(StreamingResponse):
    """StreamingResponse that releases its source when sending stops early."""

    def __init__(self, stream: ReleasingStream, **kwargs: Any) -> None:
        super().__init__(stream, **kwargs)
        self.releasing_stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # no-op after a complete send
            self.releasing_stream.close()


class ResponseContext:
    """Headers staged by adapters and handlers before the response is built."""

    def __init__(self) -> None:
        self.headers = MutableHeaders()

    def has_header(self, name: str) -> bool:
        return name in self.headers

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def type(self, media_type: str) -> None:
        self.headers["content-type"] = media_type

    def send(self, status_code: int, content: bytes | str) -> Response:
        return Response(content=content, status_code=status_code, headers=dict(self.headers))

    def stream(self, streamable: Streamable) -> ReleasingStreamingResponse:
        if streamable.media_type is not None:
            self.type(streamable.media_type)
        return ReleasingStreamingResponse(
            ReleasingStream(streamable.source, streamable.release),
            status_code=200,
            headers=dict(self.headers),
        )
