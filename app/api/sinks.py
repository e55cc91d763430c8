"""
Response sinks
Deliver ask outcomes either as one JSON body or as server-sent events.
"""
import asyncio
from typing import Any, AsyncIterator, Awaitable, Optional, Set

from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from app.models.ask import AskResult, DoneFrame, ErrorBody, ErrorFrame
from app.services.errors import AskError, ErrorKind

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}

_CLOSED = object()

# strong references to orchestration tasks still running after their stream closed
_inflight: Set["asyncio.Future[None]"] = set()


def format_sse(frame: BaseModel) -> str:
    return f"data: {frame.model_dump_json()}\n\n"


class BufferedSink:
    """Collects the final result; intermediate frames are dropped"""

    streaming = False

    def __init__(self):
        self.result: Optional[AskResult] = None
        self.failure: Optional[AskError] = None

    async def partial(self, frame: Any) -> None:
        return None

    async def final(self, result: AskResult) -> None:
        self.result = result

    async def error(self, error: AskError) -> None:
        self.failure = error

    @staticmethod
    def reject(error: AskError) -> JSONResponse:
        body = ErrorBody(error=error.kind.value, message=error.message)
        return JSONResponse(status_code=error.status_code, content=body.model_dump())

    async def deliver(self, work: Awaitable[None]) -> JSONResponse:
        await work
        if self.failure is not None:
            return self.reject(self.failure)
        if self.result is None:
            return self.reject(AskError(ErrorKind.PROCESSING_FAILED))
        return JSONResponse(content=self.result.model_dump())


class StreamingSink:
    """Pushes frames to the client as soon as they are produced"""

    streaming = True

    def __init__(self):
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self.task: Optional["asyncio.Future[None]"] = None

    async def partial(self, frame: BaseModel) -> None:
        await self._queue.put(frame)

    async def final(self, result: AskResult) -> None:
        await self._queue.put(DoneFrame(transcript=result.transcript, text=result.text))

    async def error(self, error: AskError) -> None:
        await self._queue.put(ErrorFrame(error=error.kind.value, message=error.message))

    @staticmethod
    def reject(error: AskError) -> StreamingResponse:
        frame = ErrorFrame(error=error.kind.value, message=error.message)

        async def body() -> AsyncIterator[str]:
            yield format_sse(frame)

        return StreamingResponse(
            body(),
            status_code=error.status_code,
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )

    async def deliver(self, work: Awaitable[None]) -> StreamingResponse:
        return StreamingResponse(
            self._drain(work),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )

    async def _drain(self, work: Awaitable[None]) -> AsyncIterator[str]:
        task = asyncio.ensure_future(work)
        self.task = task
        _inflight.add(task)
        task.add_done_callback(_inflight.discard)
        task.add_done_callback(lambda _: self._queue.put_nowait(_CLOSED))
        try:
            while True:
                frame = await self._queue.get()
                if frame is _CLOSED:
                    break
                yield format_sse(frame)
        finally:
            # a client disconnect cancels the body, not the tail (synthesis, history)
            await asyncio.shield(task)
