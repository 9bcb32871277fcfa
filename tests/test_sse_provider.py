"""Tests for the SSE streaming provider over httpx."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from chatstream.errors import TransportError
from chatstream.providers.base import ChatProvider
from chatstream.providers.sse_provider import SSEChatProvider
from chatstream.schemas.messages import Message, Role
from chatstream.schemas.streaming import Delta
from chatstream.streaming.framer import aiter_lines

from .conftest import make_model_config

_HEADERS = {"content-type": "text/event-stream; charset=utf-8"}


def _event(content: str = "", reasoning: str = "") -> str:
    delta = {"content": content, "reasoning_content": reasoning}
    return "data: " + json.dumps({"choices": [{"delta": delta}]}, ensure_ascii=False)


def _body(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


class _ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in fixed chunks, optionally failing after them."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self._chunks = chunks
        self._error = error

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        pass


def _split(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


def _provider(handler, **kwargs) -> SSEChatProvider:
    return SSEChatProvider(
        make_model_config(**kwargs.pop("config", {})),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


_HISTORY = [
    Message(role=Role.SYSTEM, content="Be brief."),
    Message(role=Role.USER, content="hi"),
    Message(role=Role.ASSISTANT, content="hello", reasoning="private"),
    Message(role=Role.USER, content="again"),
]


async def _collect(provider: SSEChatProvider) -> list[Delta]:
    return [delta async for delta in provider.stream(_HISTORY)]


class TestPayload:
    def test_build_payload(self):
        provider = SSEChatProvider(make_model_config(temperature=0.6))
        payload = provider.build_payload(_HISTORY)
        assert payload["model"] == "test-model-v1"
        assert payload["stream"] is True
        assert payload["temperature"] == 0.6
        assert payload["top_p"] == 0.95
        assert payload["max_tokens"] == 8192

    def test_payload_strips_local_fields(self):
        payload = SSEChatProvider(make_model_config()).build_payload(_HISTORY)
        for message in payload["messages"]:
            assert set(message) == {"role", "content"}
        assert payload["messages"][2] == {"role": "assistant", "content": "hello"}

    def test_is_chat_provider(self):
        assert issubclass(SSEChatProvider, ChatProvider)


class TestStreaming:
    @pytest.mark.asyncio
    async def test_streams_deltas_in_order(self):
        body = _body(_event("Hel"), _event("lo"), _event(reasoning="hmm"), "data: [DONE]")

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        provider = _provider(handler)
        deltas = await _collect(provider)
        assert "".join(d.content for d in deltas) == "Hello"
        assert "".join(d.reasoning for d in deltas) == "hmm"
        assert provider.last_stream_completed is True

    @pytest.mark.asyncio
    async def test_request_shape(self, monkeypatch):
        monkeypatch.setenv("TEST_API_KEY", "sk-test")
        seen: dict = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, headers=_HEADERS, content=_body("data: [DONE]"))

        await _collect(_provider(handler))
        assert seen["auth"] == "Bearer sk-test"
        assert seen["url"] == "https://example.test/v1/chat/completions"
        assert seen["body"]["stream"] is True
        assert all(set(m) == {"role", "content"} for m in seen["body"]["messages"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 3, 17])
    async def test_chunking_does_not_change_result(self, size):
        body = _body(_event("你好，"), _event("世界"), "", ": ping", _event("!"), "data: [DONE]")

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, stream=_ChunkedStream(_split(body, size)))

        deltas = await _collect(_provider(handler))
        assert "".join(d.content for d in deltas) == "你好，世界!"

    @pytest.mark.asyncio
    async def test_stops_at_done(self):
        body = _body(_event("a"), "data: [DONE]", _event("ignored"))

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        deltas = await _collect(_provider(handler))
        assert [d.content for d in deltas] == ["a"]

    @pytest.mark.asyncio
    async def test_line_iterators_closed_at_done(self):
        body = _body(_event("a"), "data: [DONE]", _event("ignored"))
        finished: list[str] = []

        async def tracking_lines(chunks):
            try:
                async for line in aiter_lines(chunks):
                    yield line
            finally:
                finished.append("lines")

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        with patch("chatstream.providers.sse_provider.aiter_lines", tracking_lines):
            deltas = await _collect(_provider(handler))

        assert [d.content for d in deltas] == ["a"]
        assert finished == ["lines"]

    @pytest.mark.asyncio
    async def test_malformed_event_skipped(self):
        body = _body("data: {oops", _event("ok"), "data: [DONE]")

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        deltas = await _collect(_provider(handler))
        assert [d.content for d in deltas] == ["ok"]

    @pytest.mark.asyncio
    async def test_missing_done_is_not_an_error(self, caplog):
        body = _body(_event("partial"))

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        provider = _provider(handler)
        with caplog.at_level(logging.WARNING, logger="chatstream.providers.sse_provider"):
            deltas = await _collect(provider)
        assert [d.content for d in deltas] == ["partial"]
        assert provider.last_stream_completed is False
        assert any("[DONE]" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_unterminated_last_line_discarded(self):
        body = _body(_event("kept")) + _event("dropped").encode("utf-8")

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, content=body)

        deltas = await _collect(_provider(handler))
        assert [d.content for d in deltas] == ["kept"]


class TestErrors:
    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, text="invalid api key")

        with pytest.raises(TransportError) as exc_info:
            await _collect(_provider(handler, max_retries=3))
        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "invalid api key"
        assert str(exc_info.value) == "API Error: 401 - invalid api key"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self):
        responses = [
            httpx.Response(503, text="busy"),
            httpx.Response(200, headers=_HEADERS, content=_body(_event("ok"), "data: [DONE]")),
        ]

        def handler(request):
            return responses.pop(0)

        with patch(
            "chatstream.providers.sse_provider.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            deltas = await _collect(_provider(handler, max_retries=2))
        assert [d.content for d in deltas] == ["ok"]
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        def handler(request):
            return httpx.Response(500, text="boom")

        with patch("chatstream.providers.sse_provider.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TransportError) as exc_info:
                await _collect(_provider(handler, max_retries=3))
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with patch("chatstream.providers.sse_provider.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TransportError) as exc_info:
                await _collect(_provider(handler, max_retries=2))
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_interrupted_stream_keeps_earlier_deltas(self):
        stream = _ChunkedStream([_body(_event("first"))], error=httpx.ReadError("reset"))

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, stream=stream)

        received: list[Delta] = []
        with pytest.raises(TransportError, match="interrupted"):
            async for delta in _provider(handler).stream(_HISTORY):
                received.append(delta)
        assert [d.content for d in received] == ["first"]

    @pytest.mark.asyncio
    async def test_unreadable_body(self):
        stream = _ChunkedStream([], error=httpx.StreamClosed())

        def handler(request):
            return httpx.Response(200, headers=_HEADERS, stream=stream)

        with pytest.raises(TransportError, match="not readable") as exc_info:
            await _collect(_provider(handler))
        assert exc_info.value.status_code is None
