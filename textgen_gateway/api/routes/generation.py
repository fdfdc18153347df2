"""
Generation Router - /ai endpoints

- GET  /ai/providers          supported providers
- GET  /ai/models?provider=   models of one provider
- POST /ai/generate           JSON result, or Server-Sent Events when stream=true

SSE framing: a keep-alive comment first, then one `data: <payload>\\n\\n`
event per fragment. The last event is `data: [DONE]` on success or
`data: {"error": "..."}` on an upstream failure; a client that disconnects
gets neither.

Failures raised before streaming starts (validation, missing credential)
are ClassifiedErrors and become JSON error responses through the
exception handler registered in main.py.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, StreamingResponse

from textgen_gateway.api.deps import get_generation_service
from textgen_gateway.models.requests import GenerationRequest
from textgen_gateway.models.responses import StreamFragment
from textgen_gateway.services.generation import GenerationService
from textgen_gateway.services.streaming import StreamExecutor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])

KEEP_ALIVE_COMMENT = ": keep-alive\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    # Stop nginx from buffering the stream
    "X-Accel-Buffering": "no",
}


# =============================================================================
# SSE Fragment Sink
# =============================================================================


class SSEFragmentSink:
    """
    Queue-backed FragmentSink feeding an SSE response.

    The producer (StreamExecutor) pushes fragments with accept(); the
    response generator drains them with fragments(). accept() never waits:
    the queue is unbounded and a cancelled sink refuses fragments at once.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[StreamFragment]] = asyncio.Queue()
        self._cancelled = False
        self._closed = False

    async def accept(self, fragment: StreamFragment) -> bool:
        if self._cancelled or self._closed:
            return False
        self._queue.put_nowait(fragment)
        return True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the consumer as gone (client disconnected)."""
        self._cancelled = True

    def close(self) -> None:
        """Signal the end of the stream to fragments()."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def fragments(self) -> AsyncIterator[StreamFragment]:
        while True:
            fragment = await self._queue.get()
            if fragment is None:
                return
            yield fragment


def format_sse_event(fragment: StreamFragment) -> str:
    return f"data: {fragment.to_data()}\n\n"


async def stream_sse_events(executor: StreamExecutor) -> AsyncGenerator[str, None]:
    """
    Run a stream executor in a task and yield its fragments as SSE events.

    When the client goes away this generator is closed (or cancelled) by
    the server; the sink is then marked cancelled and the producer task
    cancelled so the upstream connection is released.
    """
    sink = SSEFragmentSink()

    async def produce() -> None:
        try:
            await executor.run(sink)
        finally:
            sink.close()

    task = asyncio.create_task(produce())
    try:
        yield KEEP_ALIVE_COMMENT
        async for fragment in sink.fragments():
            yield format_sse_event(fragment)
        await task
    finally:
        sink.cancel()
        if not task.done():
            logger.info(
                "Client disconnected, cancelling %s stream for %s",
                executor.provider.value,
                executor.model,
            )
            task.cancel()
            await asyncio.wait({task})
        await executor.aclose()


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/providers")
async def list_providers(
    service: GenerationService = Depends(get_generation_service),
) -> list[dict[str, str]]:
    """List the supported providers as [{id, displayName}]."""
    return service.list_providers()


@router.get("/models")
async def list_models(
    provider: Optional[str] = Query(default=None, description="Provider id"),
    service: GenerationService = Depends(get_generation_service),
) -> list[dict[str, str]]:
    """List the models of a provider as [{id, displayName}]."""
    return service.list_models(provider or "")


@router.post("/generate", response_model=None)
async def generate(
    request: GenerationRequest,
    service: GenerationService = Depends(get_generation_service),
) -> Union[JSONResponse, StreamingResponse]:
    """
    Generate text with the requested provider and model.

    Returns:
        JSONResponse: GenerationResult (stream=false)
        StreamingResponse: text/event-stream of fragments (stream=true)

    Raises:
        ClassifiedError: Rendered by the application exception handler.
    """
    logger.debug(
        "Generate request: provider=%s model=%s stream=%s",
        request.provider,
        request.model,
        request.stream,
    )

    if request.stream:
        executor = service.open_stream(request)
        return StreamingResponse(
            stream_sse_events(executor),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    result = await service.generate(request)
    return JSONResponse(content=result.model_dump(mode="json", by_alias=True))
