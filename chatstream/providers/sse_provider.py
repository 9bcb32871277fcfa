"""Server-sent-events chat provider over httpx.

Posts an OpenAI-style chat completions request with ``stream: true`` and
pipes the response text through the line framer and event decoder,
yielding one Delta per data line. Handles bearer auth, retry with
exponential backoff before streaming starts, and mapping of transport
failures to TransportError.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import aclosing

import httpx

from chatstream.errors import TransportError
from chatstream.providers.base import ChatProvider
from chatstream.schemas.config import ModelConfig
from chatstream.schemas.messages import Message
from chatstream.schemas.streaming import Delta
from chatstream.streaming.decoder import EventDecoder
from chatstream.streaming.framer import aiter_lines

logger = logging.getLogger(__name__)

_BASE_BACKOFF = 1.0  # seconds

# Statuses worth another attempt; everything else non-2xx fails at once
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class SSEChatProvider(ChatProvider):
    """Streams chat completions from an SSE endpoint.

    Args:
        config: Model entry from the registry.
        timeout: Request timeout in seconds.
        max_retries: Attempts to open the stream before giving up.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        config: ModelConfig,
        *,
        timeout: float = 120.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._api_key = os.environ.get(config.api_key_env, "")
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def stream(self, messages: list[Message]) -> AsyncIterator[Delta]:
        """Stream Deltas for ``messages``.

        Raises:
            TransportError: On a non-2xx status (after retries for
                transient ones), an unreadable body, or a network failure.
        """
        payload = self.build_payload(messages)
        self.last_stream_completed = False

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await self._open_with_retry(client, payload)
            try:
                decoder = EventDecoder()
                async with (
                    aclosing(response.aiter_text()) as chunks,
                    aclosing(aiter_lines(chunks)) as lines,
                    aclosing(decoder.adecode_lines(lines)) as deltas,
                ):
                    async for delta in deltas:
                        yield delta
                self.last_stream_completed = decoder.done
            except httpx.StreamError as e:
                raise TransportError("Response body is not readable") from e
            except httpx.HTTPError as e:
                raise TransportError(f"Stream interrupted: {e}") from e
            finally:
                await response.aclose()

        if not self.last_stream_completed:
            logger.warning(
                "Stream from %s closed before the [DONE] sentinel", self.display_name
            )

    async def _open_with_retry(
        self, client: httpx.AsyncClient, payload: dict
    ) -> httpx.Response:
        """Send the request and return a 2xx streaming response.

        Retries connection errors and transient statuses with exponential
        backoff. Other statuses fail immediately.

        Raises:
            TransportError: If no attempt produced a 2xx response.
        """
        last_error: TransportError | None = None

        for attempt in range(self._max_retries):
            try:
                request = client.build_request(
                    "POST", self._config.api_base, json=payload, headers=self._headers()
                )
                response = await client.send(request, stream=True)
            except httpx.TransportError as e:
                last_error = TransportError(f"Connection failed: {e}")
            else:
                if response.is_success:
                    return response
                body = (await response.aread()).decode("utf-8", errors="replace")
                await response.aclose()
                last_error = TransportError.from_status(response.status_code, body)
                if response.status_code not in _RETRYABLE_STATUS:
                    raise last_error

            if attempt < self._max_retries - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Stream retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1, self._max_retries, self.display_name,
                    last_error, backoff,
                )
                await asyncio.sleep(backoff)

        raise last_error
