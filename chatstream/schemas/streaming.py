"""Streaming schemas for incremental assistant output.

Defines the Delta model produced by the event decoder for every data
line and the StreamOutcome returned when a conversation turn ends.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from chatstream.schemas.messages import Message


class Delta(BaseModel):
    """One increment of assistant output from a single event line."""

    content: str = Field(default="", description="Answer text in this increment")
    reasoning: str = Field(default="", description="Thinking-channel text in this increment")

    @field_validator("content", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def is_empty(self) -> bool:
        """True when merging this delta changes nothing."""
        return not self.content and not self.reasoning


class StreamOutcome(BaseModel):
    """Result of one streamed conversation turn."""

    message: Message = Field(description="The assistant message as it stood when the turn ended")
    completed: bool = Field(
        default=False, description="True when the stream ended with the [DONE] sentinel"
    )
    superseded: bool = Field(
        default=False, description="True when a newer turn took over before this one finished"
    )
    error: str | None = Field(default=None, description="Transport failure text, if any")
    delta_count: int = Field(default=0, ge=0, description="Number of deltas merged")
