"""Streaming ingestion pipeline: framing, event decoding and delta merging."""

from chatstream.streaming.decoder import DATA_PREFIX, DONE_SENTINEL, EventDecoder, parse_payload
from chatstream.streaming.framer import LineFramer, StreamState, aiter_lines, frame, iter_lines
from chatstream.streaming.merger import DeltaMerger, merge_delta

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "DeltaMerger",
    "EventDecoder",
    "LineFramer",
    "StreamState",
    "aiter_lines",
    "frame",
    "iter_lines",
    "merge_delta",
    "parse_payload",
]
