"""Server-sent-event line decoding.

Classifies framed lines from a chat completions stream:

- blank lines and lines without the ``data: `` prefix are ignored
- ``data: [DONE]`` ends the stream; nothing after it is decoded
- any other data line is parsed as JSON and the first choice's ``delta``
  becomes a :class:`Delta`

A payload that fails to parse is logged and skipped; it never aborts the
stream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from chatstream.errors import DecodeError
from chatstream.schemas.streaming import Delta

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

# Maps Delta fields to keys of the wire ``delta`` object
_DELTA_FIELDS = {
    "content": "content",
    "reasoning": "reasoning_content",
}


def parse_payload(payload: str) -> Delta:
    """Parse one data payload into a Delta.

    A record without choices or without a delta yields an empty Delta.

    Raises:
        DecodeError: If the payload is not a JSON object or its fields
            have the wrong shape.
    """
    try:
        record = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON payload: {e}") from e

    if not isinstance(record, dict):
        raise DecodeError(f"Expected a JSON object, got {type(record).__name__}")

    choices = record.get("choices") or []
    if not isinstance(choices, list):
        raise DecodeError("'choices' is not a list")
    if not choices:
        return Delta()

    first = choices[0]
    delta: Any = first.get("delta") if isinstance(first, dict) else None
    if not isinstance(delta, dict):
        return Delta()

    fields: dict[str, str] = {}
    for name, key in _DELTA_FIELDS.items():
        value = delta.get(key)
        if value is not None and not isinstance(value, str):
            raise DecodeError(f"'{key}' is not a string")
        fields[name] = value or ""
    return Delta(**fields)


class EventDecoder:
    """Decodes framed lines of one stream into Deltas.

    Once the ``[DONE]`` sentinel has been seen the decoder is finished and
    ignores every further line without parsing it.
    """

    def __init__(self) -> None:
        self.done = False
        self.skipped = 0

    def decode(self, line: str) -> Delta | None:
        """Classify a single line; return a Delta for a usable data line."""
        if self.done:
            return None

        stripped = line.strip()
        if not stripped.startswith(DATA_PREFIX):
            return None

        payload = stripped[len(DATA_PREFIX):]
        if payload == DONE_SENTINEL:
            self.done = True
            return None

        try:
            return parse_payload(payload)
        except DecodeError as e:
            self.skipped += 1
            logger.warning("Skipping malformed stream event: %s", e)
            return None

    def decode_lines(self, lines: Iterable[str]) -> Iterator[Delta]:
        """Yield Deltas for ``lines`` in order, stopping at the sentinel."""
        for line in lines:
            delta = self.decode(line)
            if self.done:
                return
            if delta is not None:
                yield delta

    async def adecode_lines(self, lines: AsyncIterable[str]) -> AsyncIterator[Delta]:
        """Async counterpart of :meth:`decode_lines`."""
        async for line in lines:
            delta = self.decode(line)
            if self.done:
                return
            if delta is not None:
                yield delta
