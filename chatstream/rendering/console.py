"""Rich display for rendered messages.

Turns Block and Span sequences into Rich renderables. This is the only
place visual styling lives; the block and inline renderers produce
structure only.
"""

from __future__ import annotations

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.rule import Rule as RichRule
from rich.syntax import Syntax
from rich.text import Text

from chatstream.rendering.blocks import render_blocks
from chatstream.schemas.blocks import Block, Span
from chatstream.schemas.messages import Message, Role

# ── Brand Colors ──────────────────────────────────────────────────

BRAND = {
    "accent": "#7aa2f7",
    "user": "#9ece6a",
    "text": "#c0caf5",
    "dim": "#565f89",
    "code": "#e0af68",
    "red": "#f7768e",
}

_HEADING_STYLES = {
    1: "bold underline white",
    2: "bold white",
    3: "bold " + BRAND["text"],
}

_SPAN_STYLES = {
    "text": "",
    "bold": "bold white",
    "code": f"{BRAND['code']} on #1f2335",
}

_CODE_THEME = "monokai"


def spans_to_text(spans: list[Span], base_style: str = "") -> Text:
    """Build a styled Text from inline spans."""
    text = Text(style=base_style)
    for span in spans:
        text.append(span.value, style=_SPAN_STYLES[span.kind])
    return text


def block_to_renderable(block: Block) -> RenderableType:
    """Map one Block to a Rich renderable."""
    if block.kind == "heading":
        return spans_to_text(block.spans, _HEADING_STYLES[block.level])

    if block.kind == "list_item":
        marker = f"{block.index}. " if block.ordered else "• "
        text = Text("  ")
        text.append(marker, style=BRAND["dim"])
        text.append_text(spans_to_text(block.spans))
        return text

    if block.kind == "rule":
        return RichRule(style=BRAND["dim"])

    if block.kind == "spacer":
        return Text("")

    if block.kind == "code_block":
        return Panel(
            Syntax(
                block.raw_text,
                block.language or "text",
                theme=_CODE_THEME,
                word_wrap=True,
            ),
            title=block.language or None,
            title_align="left",
            border_style=BRAND["dim"],
        )

    return spans_to_text(block.spans, BRAND["text"])


def render_text(content: str) -> Group:
    """Render accumulated text into a single Rich Group."""
    return Group(*(block_to_renderable(block) for block in render_blocks(content)))


def render_message(message: Message, show_reasoning: bool = True) -> RenderableType:
    """Render a full message, with its thinking text in a dim panel."""
    if message.role == Role.USER:
        text = Text("› ", style=BRAND["user"])
        text.append(message.content)
        return text

    parts: list[RenderableType] = []
    if show_reasoning and message.reasoning:
        parts.append(
            Panel(
                Text(message.reasoning, style=f"italic {BRAND['dim']}"),
                title="Thinking",
                title_align="left",
                border_style=BRAND["dim"],
            )
        )
    parts.append(render_text(message.content))
    return Group(*parts)


class LiveMessageView:
    """Re-renders the in-progress message on every update.

    Usable as the ``on_update`` callback of a conversation turn.
    """

    def __init__(self, console: Console, show_reasoning: bool = True) -> None:
        self._console = console
        self._show_reasoning = show_reasoning
        self._live: Live | None = None

    def __enter__(self) -> LiveMessageView:
        self._live = Live(
            Text("…", style=BRAND["dim"]),
            console=self._console,
            refresh_per_second=12,
            transient=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._live is not None:
            self._live.__exit__(*exc_info)
            self._live = None

    def __call__(self, message: Message) -> None:
        if self._live is not None:
            self._live.update(render_message(message, self._show_reasoning))
