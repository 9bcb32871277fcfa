"""Message schemas for conversation state.

Defines the chat roles, the Message record accumulated while a response
streams, and the ChatSession container the display layer keeps.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

DEFAULT_SESSION_TITLE = "New chat"
_TITLE_LENGTH = 30


class Role(StrEnum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A single conversation message.

    While an assistant response streams, ``content`` and ``reasoning``
    only ever grow. ``reasoning`` is None for user and system messages.
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique message identifier (UUID v4)",
    )
    role: Role = Field(description="Who authored the message")
    content: str = Field(default="", description="The final answer text")
    reasoning: str | None = Field(
        default=None, description="Thinking-channel text (assistant only)"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this message was created",
    )

    def to_api(self) -> dict[str, str]:
        """Return the wire form sent upstream: role and content only."""
        return {"role": self.role.value, "content": self.content}


class ChatSession(BaseModel):
    """A titled list of messages with an optional session-level prompt."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(default=DEFAULT_SESSION_TITLE)
    messages: list[Message] = Field(default_factory=list)
    system_prompt: str = Field(default="", description="Prompt applied to this session only")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def refresh_title(self) -> str:
        """Derive the title from the first message, keeping a custom one."""
        if not self.messages:
            self.title = DEFAULT_SESSION_TITLE
        elif self.title == DEFAULT_SESSION_TITLE:
            self.title = self.messages[0].content[:_TITLE_LENGTH]
        return self.title
