"""Line framing for chunked response text.

Transport reads never align with line boundaries, so every fragment is
appended to the carried remainder of the previous read and only
newline-terminated lines are released. The remainder is an explicit
value passed into and returned from each step; nothing is shared between
streams.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class StreamState:
    """Unterminated tail of the most recently framed text."""

    carry: str = ""


def frame(state: StreamState, fragment: str) -> tuple[StreamState, list[str]]:
    """Split ``fragment`` into complete lines, carrying the partial tail.

    Args:
        state: State returned by the previous step (``StreamState()`` first).
        fragment: Next piece of decoded response text.

    Returns:
        The new state and the complete lines, without their ``\\n``.
    """
    if not fragment:
        return state, []
    *lines, carry = (state.carry + fragment).split("\n")
    return StreamState(carry=carry), lines


class LineFramer:
    """Stateful wrapper over :func:`frame` for one stream.

    The carried remainder is dropped at end of stream: an unterminated
    line is never a complete event.
    """

    def __init__(self) -> None:
        self._state = StreamState()

    @property
    def pending(self) -> str:
        """The partial line held back from the last feed."""
        return self._state.carry

    def feed(self, fragment: str) -> list[str]:
        """Return the lines completed by ``fragment``."""
        self._state, lines = frame(self._state, fragment)
        return lines

    def close(self) -> str:
        """End the stream and return (and discard) any unterminated tail."""
        leftover = self._state.carry
        self._state = StreamState()
        return leftover


def iter_lines(fragments: Iterable[str]) -> Iterator[str]:
    """Yield complete lines from an iterable of text fragments."""
    framer = LineFramer()
    for fragment in fragments:
        yield from framer.feed(fragment)
    framer.close()


async def aiter_lines(fragments: AsyncIterable[str]) -> AsyncIterator[str]:
    """Async counterpart of :func:`iter_lines` for transport streams."""
    framer = LineFramer()
    async for fragment in fragments:
        for line in framer.feed(fragment):
            yield line
    framer.close()
