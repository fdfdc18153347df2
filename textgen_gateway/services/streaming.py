"""
Streaming Generation Executor

Drives one streaming call from a ModelInvoker into a consumer sink.

State machine (one instance per request, terminal states are final):

    IDLE -> STREAMING -> COMPLETED   upstream finished, one [DONE] emitted
                      -> CANCELLED   consumer went away, nothing more emitted
                      -> FAILED      upstream raised, one error fragment emitted

The sink is owned by the transport (e.g. the SSE route). Cancellation is
checked before every emission and observed again when accept() returns
False; either way the upstream iterator is closed so the provider
connection is released. Task cancellation (CancelledError) counts as
consumer cancellation and is re-raised.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable

from textgen_gateway.core.exceptions import ClassifiedError
from textgen_gateway.models.catalog import ProviderId
from textgen_gateway.models.responses import (
    ContentFragment,
    DoneFragment,
    ErrorFragment,
    StreamFragment,
)
from textgen_gateway.observability.logging import get_logger
from textgen_gateway.observability.metrics import record_generation
from textgen_gateway.providers.base import ModelInvoker
from textgen_gateway.services.classifier import ErrorClassifier

logger = get_logger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_STATES = frozenset(
    {StreamState.COMPLETED, StreamState.CANCELLED, StreamState.FAILED}
)


@runtime_checkable
class FragmentSink(Protocol):
    """
    Consumer of stream fragments, implemented by the transport.

    accept() returns False once the consumer no longer takes fragments;
    a write after cancellation is a no-op returning False, never an error.
    """

    async def accept(self, fragment: StreamFragment) -> bool:
        ...

    def is_cancelled(self) -> bool:
        ...


class StreamExecutor:
    """
    Executes one streaming generation.

    Owns the invoker: it is closed when run() finishes, or by aclose() if
    run() never gets to start.

    Args:
        provider: Provider id (for classification, logs and metrics).
        model: Model id.
        invoker: Invoker bound to the provider credential and model.
        params: Call parameters (only the fields that are set).
        classifier: Error classifier for upstream failures.

    Example:
        >>> executor = service.open_stream(request)
        >>> state = await executor.run(sink)
    """

    def __init__(
        self,
        provider: ProviderId,
        model: str,
        invoker: ModelInvoker,
        params: dict[str, Any],
        classifier: ErrorClassifier,
    ) -> None:
        self._provider = provider
        self._model = model
        self._invoker = invoker
        self._params = params
        self._classifier = classifier

        self._state = StreamState.IDLE
        self._started = False
        self._invoker_closed = False
        self.fragment_count = 0
        self.error: Optional[ClassifiedError] = None

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def provider(self) -> ProviderId:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    async def run(self, sink: FragmentSink) -> StreamState:
        """
        Stream upstream fragments into the sink until a terminal state.

        Returns:
            The terminal StreamState.

        Raises:
            RuntimeError: If the executor was already run.
            asyncio.CancelledError: If the running task was cancelled
                (state is CANCELLED).
        """
        if self._started:
            raise RuntimeError("stream has already been run; open a new one")
        self._started = True

        logger.info(
            "stream_started", provider=self._provider.value, model=self._model
        )
        start_time = time.perf_counter()
        upstream = self._invoker.stream(**self._params)

        try:
            await self._pump(upstream, sink)
        except asyncio.CancelledError:
            self._state = StreamState.CANCELLED
            raise
        except Exception as exc:  # upstream failure, reported in-band
            await self._fail(exc, sink)
        finally:
            await self._close_upstream(upstream)
            await self.aclose()
            self._finish(start_time)

        return self._state

    async def _pump(self, upstream: Any, sink: FragmentSink) -> None:
        async for text in upstream:
            if sink.is_cancelled():
                self._state = StreamState.CANCELLED
                return
            self._state = StreamState.STREAMING
            if not await sink.accept(ContentFragment(content=text)):
                self._state = StreamState.CANCELLED
                return
            self.fragment_count += 1

        if sink.is_cancelled():
            self._state = StreamState.CANCELLED
            return
        await sink.accept(DoneFragment())
        self._state = StreamState.COMPLETED

    async def _fail(self, exc: Exception, sink: FragmentSink) -> None:
        self.error = self._classifier.classify(self._provider, exc)
        self._state = StreamState.FAILED
        if not sink.is_cancelled():
            await sink.accept(ErrorFragment(error=self.error.message))

    @staticmethod
    async def _close_upstream(upstream: Any) -> None:
        aclose = getattr(upstream, "aclose", None)
        if aclose is not None:
            await aclose()

    async def aclose(self) -> None:
        """Close the invoker. Safe to call more than once."""
        if self._invoker_closed:
            return
        self._invoker_closed = True
        await self._invoker.aclose()

    def _finish(self, start_time: float) -> None:
        log = logger.warning if self._state is StreamState.FAILED else logger.info
        log(
            "stream_finished",
            provider=self._provider.value,
            model=self._model,
            state=self._state.value,
            fragments=self.fragment_count,
            duration_seconds=round(time.perf_counter() - start_time, 3),
            category=self.error.category.value if self.error else None,
        )
        record_generation(self._provider.value, self._model, "stream", self._state.value)
