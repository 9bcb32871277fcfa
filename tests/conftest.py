"""Shared fixtures and fakes for chatstream tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest

from chatstream.providers.base import ChatProvider
from chatstream.schemas.config import ModelConfig
from chatstream.schemas.messages import Message
from chatstream.schemas.streaming import Delta


def make_model_config(**overrides) -> ModelConfig:
    defaults = {
        "model": "test-model-v1",
        "display_name": "Test Model",
        "api_key_env": "TEST_API_KEY",
        "api_base": "https://example.test/v1/chat/completions",
    }
    defaults.update(overrides)
    return ModelConfig(**defaults)


class ScriptedProvider(ChatProvider):
    """Yields a fixed list of deltas, optionally gated or failing."""

    def __init__(
        self,
        script: list[Delta],
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
        completes: bool = True,
    ) -> None:
        super().__init__(make_model_config())
        self.script = script
        self.error = error
        self.gate = gate
        self.completes = completes
        self.received: list[Message] | None = None

    async def stream(self, messages: list[Message]) -> AsyncIterator[Delta]:
        self.received = messages
        self.last_stream_completed = False
        for i, delta in enumerate(self.script):
            if self.gate is not None and i > 0:
                await self.gate.wait()
            yield delta
        if self.error is not None:
            raise self.error
        self.last_stream_completed = self.completes


@pytest.fixture
def model_config() -> ModelConfig:
    return make_model_config()
