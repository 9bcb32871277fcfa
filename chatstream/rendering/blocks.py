"""Block rendering: accumulated text to typed display blocks.

Rendering is a pure function of its input and may run on every received
delta. Fully delimited code fences are cut out first; every other line
is classified on its own by the first matching classifier in
``LINE_CLASSIFIERS`` (rule, heading, unordered item, ordered item,
blank, paragraph). Consecutive lines are never merged.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator

from chatstream.rendering.inline import render_inline
from chatstream.schemas.blocks import (
    Block,
    CodeBlock,
    Heading,
    ListItem,
    Paragraph,
    Rule,
    Spacer,
)

FENCE = "```"

# Tag allowed on the opening fence line (python, c++, objective-c, c#)
_LANG_RE = re.compile(r"[\w+#.-]*")
_HEADING_RE = re.compile(r"(#{1,3})\s+(\S.*)")
_UNORDERED_RE = re.compile(r"[*-] (.*)")
_ORDERED_RE = re.compile(r"(\d+)\. (.*)")

LineClassifier = Callable[[str], Block | None]


# ── Line classifiers ──────────────────────────────────────────────


def classify_rule(line: str) -> Block | None:
    if line in ("---", "***"):
        return Rule()
    return None


def classify_heading(line: str) -> Block | None:
    match = _HEADING_RE.fullmatch(line)
    if not match:
        return None
    return Heading(level=len(match.group(1)), spans=render_inline(match.group(2)))


def classify_unordered(line: str) -> Block | None:
    match = _UNORDERED_RE.fullmatch(line)
    if not match:
        return None
    return ListItem(ordered=False, spans=render_inline(match.group(1)))


def classify_ordered(line: str) -> Block | None:
    match = _ORDERED_RE.fullmatch(line)
    if not match:
        return None
    return ListItem(ordered=True, index=int(match.group(1)), spans=render_inline(match.group(2)))


def classify_blank(line: str) -> Block | None:
    return Spacer() if not line.strip() else None


def classify_paragraph(line: str) -> Block | None:
    return Paragraph(spans=render_inline(line))


LINE_CLASSIFIERS: tuple[LineClassifier, ...] = (
    classify_rule,
    classify_heading,
    classify_unordered,
    classify_ordered,
    classify_blank,
    classify_paragraph,
)


def classify_line(line: str) -> Block:
    """Classify a single line; the paragraph classifier always accepts."""
    for classifier in LINE_CLASSIFIERS:
        block = classifier(line)
        if block is not None:
            return block
    raise AssertionError("paragraph classifier declined")  # pragma: no cover


# ── Code fences ───────────────────────────────────────────────────


def parse_fence(interior: str) -> CodeBlock:
    """Build a CodeBlock from the text between two fences.

    The first line is the language tag when it looks like one and a
    newline follows it; a single newline before the closing fence is not
    part of the code.
    """
    info, newline, body = interior.partition("\n")
    info = info.strip()
    if newline and _LANG_RE.fullmatch(info):
        language = info or None
    else:
        language, body = None, interior
    if body.endswith("\n"):
        body = body[:-1]
    return CodeBlock(language=language, raw_text=body)


def split_fences(text: str) -> Iterator[str | CodeBlock]:
    """Yield text segments and CodeBlocks in original order.

    Only fences with both an opening and a closing ``` are code; an
    unterminated trailing fence stays in the text. The newline that ends
    the line before a fence and the one after a closing fence belong to
    the fence, not to the neighbouring text.
    """
    pos = 0
    while True:
        start = text.find(FENCE, pos)
        end = text.find(FENCE, start + len(FENCE)) if start != -1 else -1
        if end == -1:
            yield text[pos:]
            return

        before = text[pos:start]
        if before.endswith("\n"):
            before = before[:-1]
        if before:
            yield before

        yield parse_fence(text[start + len(FENCE):end])

        pos = end + len(FENCE)
        if text.startswith("\n", pos):
            pos += 1


# ── Entry point ───────────────────────────────────────────────────


def render_blocks(text: str) -> list[Block]:
    """Render accumulated text into an ordered list of Blocks.

    Empty input renders no blocks.
    """
    blocks: list[Block] = []
    for segment in split_fences(text):
        if isinstance(segment, CodeBlock):
            blocks.append(segment)
            continue
        if not segment:
            continue
        for line in segment.split("\n"):
            blocks.append(classify_line(line.rstrip("\r")))
    return blocks
