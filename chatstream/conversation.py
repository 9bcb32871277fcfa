"""Conversation turns over a streaming provider.

A Conversation owns one ChatSession and runs its turns: it records the
user message, composes the system prompt, appends an assistant
placeholder and folds the provider's deltas into it. Each turn gets a
new generation number; starting another turn or calling ``cancel()``
supersedes the running one. A superseded turn is woken at once, closes
its stream without waiting for the next event, and never touches its
message again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx

from chatstream.errors import TransportError
from chatstream.providers.base import ChatProvider
from chatstream.schemas.config import ChatConfig
from chatstream.schemas.messages import ChatSession, Message, Role
from chatstream.schemas.streaming import Delta, StreamOutcome
from chatstream.streaming.merger import DeltaMerger

logger = logging.getLogger(__name__)

ERROR_NOTICE = "\n\n**Error:** Failed to generate a response. Please check your network."

# Builds the provider for a model registry key
ProviderFactory = Callable[[str], ChatProvider]


def compose_system_prompt(global_prompt: str, session_prompt: str) -> str:
    """Join the global and session prompts with a blank line.

    Blank parts are left out; the result is empty when both are.
    """
    parts = [p for p in (global_prompt, session_prompt) if p.strip()]
    return "\n\n".join(parts)


class Conversation:
    """A single chat session and the lifecycle of its streamed turns."""

    def __init__(
        self,
        config: ChatConfig,
        provider_factory: ProviderFactory,
        session: ChatSession | None = None,
    ) -> None:
        self.config = config
        self.session = session or ChatSession()
        self._provider_factory = provider_factory
        self._generation = 0
        # Set when the running turn is superseded
        self._halt = asyncio.Event()

    @property
    def messages(self) -> list[Message]:
        return self.session.messages

    @property
    def generation(self) -> int:
        """Number of the most recent turn (or cancellation)."""
        return self._generation

    def cancel(self) -> None:
        """Supersede the running turn, if any."""
        self._generation += 1
        self._halt.set()

    def reset(self) -> None:
        """Start a fresh session, abandoning any running turn."""
        self.cancel()
        self.session = ChatSession()

    def api_history(self) -> list[Message]:
        """Messages to send upstream, with the composed system prompt first."""
        history = list(self.session.messages)
        system = compose_system_prompt(self.config.system_prompt, self.session.system_prompt)
        if system:
            history.insert(0, Message(role=Role.SYSTEM, content=system))
        return history

    async def send(
        self,
        text: str,
        *,
        thinking: bool = False,
        on_update: Callable[[Message], Any] | None = None,
    ) -> StreamOutcome:
        """Run one turn and return how it ended.

        Args:
            text: The user's message.
            thinking: Use the configured thinking model.
            on_update: Called with the assistant message after every merge
                and after a failure notice; may be a coroutine function.

        Returns:
            StreamOutcome with the final assistant message.

        Raises:
            ValueError: If ``text`` is blank.
        """
        if not text.strip():
            raise ValueError("Cannot send an empty message")

        self.session.messages.append(Message(role=Role.USER, content=text))
        self.session.refresh_title()
        history = self.api_history()

        placeholder = Message(role=Role.ASSISTANT, content="", reasoning="")
        self.session.messages.append(placeholder)

        self._halt.set()
        halt = self._halt = asyncio.Event()
        self._generation += 1
        merger = DeltaMerger(placeholder, self._generation, lambda: self._generation)
        provider = self._provider_factory(self.config.model_key(thinking))
        logger.debug(
            "Turn %d streaming from %s (%d history messages)",
            merger.generation, provider.display_name, len(history),
        )

        error: str | None = None
        stream = provider.stream(history)
        halted = asyncio.ensure_future(halt.wait())
        try:
            while True:
                delta = await _next_unless(stream, halted)
                if delta is None or not merger.apply(delta):
                    break
                self._store(merger.message)
                await _notify(on_update, merger.message)
        except (TransportError, httpx.HTTPError) as e:
            error = str(e)
            logger.error("Turn %d failed: %s", merger.generation, e)
            if merger.is_current:
                merger.fail(ERROR_NOTICE)
                self._store(merger.message)
                await _notify(on_update, merger.message)
        finally:
            halted.cancel()
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        superseded = merger.generation != self._generation
        merger.close()
        return StreamOutcome(
            message=merger.message,
            completed=provider.last_stream_completed and error is None and not superseded,
            superseded=superseded,
            error=error,
            delta_count=merger.merged,
        )

    def _store(self, message: Message) -> None:
        """Replace the stored message with the same id, if still present."""
        for i, existing in enumerate(self.session.messages):
            if existing.id == message.id:
                self.session.messages[i] = message
                return


async def _next_unless(stream: AsyncIterator[Delta], halted: asyncio.Future) -> Delta | None:
    """Return the next delta, or None once the stream ends or ``halted`` fires.

    A read still pending when ``halted`` fires is cancelled, which unwinds
    the provider's stream and closes its connection.
    """
    pending = asyncio.ensure_future(stream.__anext__())
    try:
        await asyncio.wait({pending, halted}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not pending.done():
            pending.cancel()
            await asyncio.wait({pending})
    if pending.cancelled():
        return None
    try:
        return pending.result()
    except StopAsyncIteration:
        return None


async def _notify(callback: Callable[[Message], Any] | None, message: Message) -> None:
    if callback is None:
        return
    result = callback(message)
    if asyncio.iscoroutine(result):
        await result
