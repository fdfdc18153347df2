"""
Fake Model Invoker - Test Double Implementation

This module provides a FakeInvoker that implements the real ModelInvoker
interface without making network calls.

This is NOT mocking - it's a proper implementation of the interface with
deterministic behavior. It can be used for:
- Unit and integration testing without network calls
- Local development without API keys
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any, Optional

from textgen_gateway.core.config import Settings
from textgen_gateway.models.responses import Completion, Usage
from textgen_gateway.providers.base import ModelInvoker


class FakeInvoker(ModelInvoker):
    """
    Fake invoker with scripted output.

    Attributes:
        response_text: Text returned by complete()
        fragments: Fragments yielded by stream(), in order
        error: Exception raised by complete(), or by stream() after all
            fragments were yielded
        hang: If True, stream() blocks forever after its fragments
        complete_calls / stream_calls: Recorded call parameters
        closed: Whether aclose() was called
        stream_closed: Whether the stream iterator was finalized

    Example:
        >>> invoker = FakeInvoker(fragments=["Hel", "lo"])
        >>> [text async for text in invoker.stream(prompt="hi")]
        ['Hel', 'lo']
    """

    provider = "fake"

    def __init__(
        self,
        api_key: str = "fake-key",
        model: str = "fake-model",
        response_text: str = "Fake response for testing",
        fragments: Optional[list[str]] = None,
        error: Optional[BaseException] = None,
        hang: bool = False,
        finish_reason: Optional[str] = "stop",
        usage: Optional[Usage] = None,
    ) -> None:
        super().__init__(api_key, model)
        self.response_text = response_text
        self.fragments = list(fragments) if fragments is not None else ["Fake ", "stream"]
        self.error = error
        self.hang = hang
        self.finish_reason = finish_reason
        self.usage = usage or Usage(prompt_tokens=3, completion_tokens=5, total_tokens=8)

        self.complete_calls: list[dict[str, Any]] = []
        self.stream_calls: list[dict[str, Any]] = []
        self.yielded: list[str] = []
        self.closed = False
        self.stream_closed = False

    async def complete(self, **params: Any) -> Completion:
        self.complete_calls.append(params)
        if self.error is not None:
            raise self.error
        return Completion(
            text=self.response_text,
            finish_reason=self.finish_reason,
            usage=self.usage,
        )

    async def stream(self, **params: Any) -> AsyncIterator[str]:
        self.stream_calls.append(params)
        try:
            for fragment in self.fragments:
                self.yielded.append(fragment)
                yield fragment
                # Let other tasks observe each fragment, like real network I/O
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            if self.hang:
                await asyncio.Event().wait()
        finally:
            self.stream_closed = True

    async def aclose(self) -> None:
        self.closed = True


class FakeInvokerFactory:
    """
    Invoker factory returning FakeInvokers, for injection into the registry.

    Every created invoker is kept in `created` for test assertions.
    """

    def __init__(self, **invoker_kwargs: Any) -> None:
        self._invoker_kwargs = invoker_kwargs
        self.created: list[FakeInvoker] = []

    def __call__(self, api_key: str, model: str, settings: Settings) -> FakeInvoker:
        invoker = FakeInvoker(api_key=api_key, model=model, **self._invoker_kwargs)
        self.created.append(invoker)
        return invoker

    @property
    def last(self) -> FakeInvoker:
        return self.created[-1]
