"""
Unit tests for textgen_gateway/providers/openai.py - OpenAIInvoker.

The SDK client is replaced with AsyncMock so no request leaves the test.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from textgen_gateway.providers.base import ModelInvoker, build_messages
from textgen_gateway.providers.openai import OpenAIInvoker


def make_completion(content="Hello!", finish_reason="stop", usage=True):
    return SimpleNamespace(
        choices=[
            SimpleNamespace(
                message=SimpleNamespace(content=content),
                finish_reason=finish_reason,
            )
        ],
        usage=(
            SimpleNamespace(prompt_tokens=4, completion_tokens=2, total_tokens=6)
            if usage
            else None
        ),
    )


def make_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeSDKStream:
    """Async-iterable stand-in for openai.AsyncStream."""

    def __init__(self, chunks, error=None):
        self._chunks = chunks
        self._error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def close(self):
        self.closed = True


@pytest.fixture
def invoker():
    return OpenAIInvoker(api_key="test-key", model="gpt-4o")


@pytest.fixture
def mock_create(invoker):
    create = AsyncMock()
    invoker._client.chat.completions.create = create
    return create


class TestOpenAIInvokerClass:
    def test_is_model_invoker(self):
        assert issubclass(OpenAIInvoker, ModelInvoker)

    def test_sdk_retries_disabled(self, invoker):
        assert invoker._client.max_retries == 0

    def test_custom_base_url(self):
        invoker = OpenAIInvoker(
            api_key="test-key", model="gpt-4o", base_url="https://proxy.example.test/v1"
        )

        assert str(invoker._client.base_url).startswith("https://proxy.example.test/v1")


class TestBuildMessages:
    def test_system_then_user(self):
        assert build_messages("hi", "be brief") == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]

    def test_empty_parts_left_out(self):
        assert build_messages("", "only system") == [
            {"role": "system", "content": "only system"}
        ]
        assert build_messages("only prompt") == [{"role": "user", "content": "only prompt"}]


class TestComplete:
    @pytest.mark.asyncio
    async def test_returns_completion(self, invoker, mock_create):
        mock_create.return_value = make_completion()

        completion = await invoker.complete(prompt="hi")

        assert completion.text == "Hello!"
        assert completion.finish_reason == "stop"
        assert completion.usage.prompt_tokens == 4
        assert completion.usage.total_tokens == 6

    @pytest.mark.asyncio
    async def test_only_set_parameters_are_sent(self, invoker, mock_create):
        mock_create.return_value = make_completion()

        await invoker.complete(prompt="hi")

        assert mock_create.call_args.kwargs == {
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hi"}],
        }

    @pytest.mark.asyncio
    async def test_all_parameters_mapped(self, invoker, mock_create):
        mock_create.return_value = make_completion()

        await invoker.complete(prompt="hi", system="sys", temperature=0.3, max_tokens=50)

        kwargs = mock_create.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 50
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_missing_usage_and_content(self, invoker, mock_create):
        mock_create.return_value = make_completion(content=None, usage=False)

        completion = await invoker.complete(prompt="hi")

        assert completion.text == ""
        assert completion.usage is None

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate_unchanged(self, invoker, mock_create):
        error = RuntimeError("sdk failure")
        mock_create.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            await invoker.complete(prompt="hi")

        assert exc_info.value is error


class TestStream:
    @pytest.mark.asyncio
    async def test_yields_non_empty_deltas_in_order(self, invoker, mock_create):
        sdk_stream = FakeSDKStream(
            [make_chunk("Hel"), make_chunk(None), make_chunk(""), make_chunk("lo")]
        )
        mock_create.return_value = sdk_stream

        fragments = [text async for text in invoker.stream(prompt="hi")]

        assert fragments == ["Hel", "lo"]
        assert mock_create.call_args.kwargs["stream"] is True
        assert sdk_stream.closed is True

    @pytest.mark.asyncio
    async def test_chunks_without_choices_skipped(self, invoker, mock_create):
        mock_create.return_value = FakeSDKStream(
            [SimpleNamespace(choices=[]), make_chunk("ok")]
        )

        assert [text async for text in invoker.stream(prompt="hi")] == ["ok"]

    @pytest.mark.asyncio
    async def test_sdk_stream_closed_when_consumer_stops(self, invoker, mock_create):
        sdk_stream = FakeSDKStream([make_chunk("a"), make_chunk("b"), make_chunk("c")])
        mock_create.return_value = sdk_stream

        upstream = invoker.stream(prompt="hi")
        assert await upstream.__anext__() == "a"
        await upstream.aclose()

        assert sdk_stream.closed is True

    @pytest.mark.asyncio
    async def test_sdk_stream_closed_on_error(self, invoker, mock_create):
        sdk_stream = FakeSDKStream([make_chunk("a")], error=RuntimeError("reset"))
        mock_create.return_value = sdk_stream

        with pytest.raises(RuntimeError):
            async for _ in invoker.stream(prompt="hi"):
                pass

        assert sdk_stream.closed is True


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, invoker):
        invoker._client.close = AsyncMock()

        async with invoker as bound:
            assert bound is invoker

        invoker._client.close.assert_awaited_once()
