"""Abstract base class for chat model providers.

Defines the ChatProvider interface the conversation layer streams
through. Conversations never talk to a transport directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from chatstream.schemas.config import ModelConfig
from chatstream.schemas.messages import Message
from chatstream.schemas.streaming import Delta


class ChatProvider(ABC):
    """Interface for any service that streams chat completions.

    Initialized from a ModelConfig loaded from the TOML registry. Exposes
    identity, sampling parameters and a single async ``stream()`` method
    that all providers must implement.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        # Whether the most recent stream ended with the [DONE] sentinel
        self.last_stream_completed = False

    # ── Identity ──────────────────────────────────────────────

    @property
    def model_id(self) -> str:
        """Model identifier sent in the request body."""
        return self._config.model

    @property
    def display_name(self) -> str:
        """Human-friendly model name for CLI output."""
        return self._config.display_name

    @property
    def supports_thinking(self) -> bool:
        """Whether the model streams a reasoning channel."""
        return self._config.thinking

    @property
    def config(self) -> ModelConfig:
        """The full ModelConfig backing this provider."""
        return self._config

    # ── Core interface ────────────────────────────────────────

    def build_payload(self, messages: list[Message]) -> dict[str, Any]:
        """Build the streaming request body.

        Only ``role`` and ``content`` of each message are sent; ids,
        timestamps and reasoning stay local.
        """
        return {
            "model": self._config.model,
            "messages": [message.to_api() for message in messages],
            "stream": True,
            "temperature": self._config.temperature,
            "top_p": self._config.top_p,
            "max_tokens": self._config.max_tokens,
        }

    @abstractmethod
    def stream(self, messages: list[Message]) -> AsyncIterator[Delta]:
        """Stream the response to ``messages`` as Deltas in arrival order.

        Args:
            messages: Full conversation history, system prompt first.

        Yields:
            One Delta per decoded event line.

        Raises:
            TransportError: If the request fails or the body is unreadable.
        """
