"""Folding deltas into the in-progress assistant message.

Merging is purely additive: content and reasoning are appended
independently, in arrival order, with no truncation or deduplication.
Every merger belongs to one stream attempt identified by a generation
number; once its generation is no longer current, or the merger is
closed, incoming deltas are dropped instead of merged.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from chatstream.schemas.messages import Message
from chatstream.schemas.streaming import Delta

logger = logging.getLogger(__name__)


def merge_delta(message: Message, delta: Delta) -> Message:
    """Return a copy of ``message`` with ``delta`` appended."""
    return message.model_copy(
        update={
            "content": message.content + delta.content,
            "reasoning": (message.reasoning or "") + delta.reasoning,
        }
    )


class DeltaMerger:
    """Accumulates one stream's deltas into its target message.

    Args:
        message: The assistant placeholder the stream fills.
        generation: Generation number of the stream attempt.
        current_generation: Returns the owner's current generation; a
            mismatch means this stream was superseded.
    """

    def __init__(
        self,
        message: Message,
        generation: int,
        current_generation: Callable[[], int],
    ) -> None:
        self.message = message
        self.generation = generation
        self._current_generation = current_generation
        self.merged = 0
        self.dropped = 0
        self.closed = False

    @property
    def is_current(self) -> bool:
        """True while this stream may still mutate its message."""
        return not self.closed and self._current_generation() == self.generation

    def apply(self, delta: Delta) -> bool:
        """Merge ``delta`` if the stream is current; return whether it was."""
        if not self.is_current:
            self.dropped += 1
            logger.debug(
                "Dropping delta for message %s (generation %d is stale or closed)",
                self.message.id, self.generation,
            )
            return False
        self.message = merge_delta(self.message, delta)
        self.merged += 1
        return True

    def fail(self, notice: str) -> Message:
        """Append a user-visible failure notice and freeze the message.

        Whatever was merged before the failure is kept. A superseded
        stream's message is left untouched.
        """
        if self.is_current:
            self.message = self.message.model_copy(
                update={"content": self.message.content + notice}
            )
        self.closed = True
        return self.message

    def close(self) -> Message:
        """Freeze the message; later deltas are dropped."""
        self.closed = True
        return self.message
