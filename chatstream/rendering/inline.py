"""Inline span rendering for a single line of text.

Scans left to right trying an ordered list of token classifiers (bold,
then inline code) at each position. A classifier either consumes a
complete, non-empty delimited token (closed by the first matching
delimiter) or declines. Tokens never nest and their interior is not
re-scanned; unmatched delimiters and empty pairs stay literal.
"""

from __future__ import annotations

from collections.abc import Callable

from chatstream.schemas.blocks import BoldSpan, CodeSpan, Span, TextSpan

# A classifier returns the span and the index just past it, or None
InlineClassifier = Callable[[str, int], tuple[Span, int] | None]


def _delimited(
    text: str, pos: int, delimiter: str, make: Callable[[str], Span]
) -> tuple[Span, int] | None:
    if not text.startswith(delimiter, pos):
        return None
    width = len(delimiter)
    # The first closing delimiter ends the token. Unlike a lazy `\*\*.*?\*\*`
    # regex, an empty pair declines and stays literal, so "****x**" and a
    # stray "```lang" never produce empty spans.
    end = text.find(delimiter, pos + width)
    if end == -1 or end == pos + width:
        return None
    return make(text[pos + width:end]), end + width


def match_bold(text: str, pos: int) -> tuple[Span, int] | None:
    """``**bold**``"""
    return _delimited(text, pos, "**", lambda value: BoldSpan(value=value))


def match_code(text: str, pos: int) -> tuple[Span, int] | None:
    """`` `code` ``"""
    return _delimited(text, pos, "`", lambda value: CodeSpan(value=value))


INLINE_CLASSIFIERS: tuple[InlineClassifier, ...] = (match_bold, match_code)


def render_inline(text: str) -> list[Span]:
    """Split one line into Text, Bold and Code spans.

    Zero-length text gaps between tokens are omitted, so an empty line
    yields an empty list.
    """
    spans: list[Span] = []
    text_start = 0
    pos = 0

    while pos < len(text):
        for classifier in INLINE_CLASSIFIERS:
            hit = classifier(text, pos)
            if hit is not None:
                break
        else:
            pos += 1
            continue

        span, end = hit
        if pos > text_start:
            spans.append(TextSpan(value=text[text_start:pos]))
        spans.append(span)
        pos = text_start = end

    if text_start < len(text):
        spans.append(TextSpan(value=text[text_start:]))
    return spans


def spans_to_plain(spans: list[Span]) -> str:
    """Concatenate span values, dropping all formatting."""
    return "".join(span.value for span in spans)
