"""Text rendering: block and inline classification plus Rich display."""

from chatstream.rendering.blocks import LINE_CLASSIFIERS, classify_line, render_blocks, split_fences
from chatstream.rendering.inline import INLINE_CLASSIFIERS, render_inline, spans_to_plain

__all__ = [
    "INLINE_CLASSIFIERS",
    "LINE_CLASSIFIERS",
    "classify_line",
    "render_blocks",
    "render_inline",
    "spans_to_plain",
    "split_fences",
]
