"""Tests for chatstream.streaming.merger: delta accumulation."""

from __future__ import annotations

from chatstream.schemas.messages import Message, Role
from chatstream.schemas.streaming import Delta
from chatstream.streaming.merger import DeltaMerger, merge_delta

_DELTAS = [
    Delta(reasoning="Let me "),
    Delta(reasoning="think."),
    Delta(content="The answer"),
    Delta(),
    Delta(content=" is 42", reasoning=""),
    Delta(content=".", reasoning=" Done."),
]


def _assistant(**kwargs) -> Message:
    return Message(role=Role.ASSISTANT, **kwargs)


class TestMergeDelta:
    def test_appends_both_fields(self):
        merged = merge_delta(_assistant(content="a", reasoning="x"), Delta(content="b", reasoning="y"))
        assert merged.content == "ab"
        assert merged.reasoning == "xy"

    def test_missing_reasoning_treated_as_empty(self):
        merged = merge_delta(_assistant(content="a"), Delta(reasoning="r"))
        assert merged.reasoning == "r"

    def test_original_not_mutated(self):
        original = _assistant(content="a", reasoning="")
        merge_delta(original, Delta(content="b"))
        assert original.content == "a"

    def test_identity_preserved(self):
        original = _assistant()
        merged = merge_delta(original, Delta(content="x"))
        assert merged.id == original.id
        assert merged.timestamp == original.timestamp

    def test_incremental_equals_concatenation(self):
        message = _assistant(content="", reasoning="")
        for delta in _DELTAS:
            message = merge_delta(message, delta)
        assert message.content == "".join(d.content for d in _DELTAS)
        assert message.reasoning == "".join(d.reasoning for d in _DELTAS)

    def test_no_deduplication(self):
        message = _assistant(content="")
        for _ in range(3):
            message = merge_delta(message, Delta(content="ha"))
        assert message.content == "hahaha"


class TestDeltaMerger:
    def test_apply_while_current(self):
        merger = DeltaMerger(_assistant(content=""), 1, lambda: 1)
        assert merger.apply(Delta(content="hi")) is True
        assert merger.message.content == "hi"
        assert merger.merged == 1

    def test_stale_generation_dropped(self):
        current = {"gen": 1}
        merger = DeltaMerger(_assistant(content=""), 1, lambda: current["gen"])
        merger.apply(Delta(content="kept"))
        current["gen"] = 2
        assert merger.apply(Delta(content="late")) is False
        assert merger.message.content == "kept"
        assert merger.dropped == 1

    def test_closed_merger_drops(self):
        merger = DeltaMerger(_assistant(content=""), 1, lambda: 1)
        merger.close()
        assert merger.apply(Delta(content="x")) is False
        assert merger.message.content == ""

    def test_fail_appends_notice_and_keeps_progress(self):
        merger = DeltaMerger(_assistant(content="", reasoning=""), 1, lambda: 1)
        merger.apply(Delta(content="partial", reasoning="thought"))
        message = merger.fail("\n\nERR")
        assert message.content == "partial\n\nERR"
        assert message.reasoning == "thought"
        assert merger.closed

    def test_fail_on_superseded_leaves_message(self):
        current = {"gen": 1}
        merger = DeltaMerger(_assistant(content="x"), 1, lambda: current["gen"])
        current["gen"] = 5
        assert merger.fail("ERR").content == "x"
