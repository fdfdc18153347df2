"""
Unit tests for textgen_gateway/providers/fake.py - the FakeInvoker test double.
"""

import asyncio

import pytest

from textgen_gateway.providers.base import ModelInvoker
from textgen_gateway.providers.fake import FakeInvoker, FakeInvokerFactory


class TestFakeInvoker:
    def test_implements_interface(self):
        assert isinstance(FakeInvoker(), ModelInvoker)

    @pytest.mark.asyncio
    async def test_complete_records_params(self):
        invoker = FakeInvoker(response_text="scripted")

        completion = await invoker.complete(prompt="hi", temperature=0.5)

        assert completion.text == "scripted"
        assert invoker.complete_calls == [{"prompt": "hi", "temperature": 0.5}]

    @pytest.mark.asyncio
    async def test_complete_raises_scripted_error(self):
        invoker = FakeInvoker(error=ValueError("boom"))

        with pytest.raises(ValueError):
            await invoker.complete(prompt="hi")

    @pytest.mark.asyncio
    async def test_stream_yields_fragments_then_error(self):
        invoker = FakeInvoker(fragments=["a", "b"], error=RuntimeError("reset"))
        received = []

        with pytest.raises(RuntimeError):
            async for text in invoker.stream(prompt="hi"):
                received.append(text)

        assert received == ["a", "b"]
        assert invoker.stream_closed is True

    @pytest.mark.asyncio
    async def test_hanging_stream_can_be_cancelled(self):
        invoker = FakeInvoker(fragments=["a"], hang=True)

        async def consume():
            async for _ in invoker.stream(prompt="hi"):
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert invoker.yielded == ["a"]
        assert invoker.stream_closed is True

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        invoker = FakeInvoker()

        async with invoker:
            assert invoker.closed is False

        assert invoker.closed is True


class TestFakeInvokerFactory:
    def test_records_created_invokers(self, test_settings):
        factory = FakeInvokerFactory(fragments=["x"])

        first = factory("key-1", "model-a", test_settings)
        second = factory("key-2", "model-b", test_settings)

        assert factory.created == [first, second]
        assert factory.last is second
        assert second.model == "model-b"
        assert second.fragments == ["x"]
