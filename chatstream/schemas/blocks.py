"""Structural block and inline span schemas.

Blocks and spans are a pure projection of accumulated text: they are
rebuilt on every render pass and never mutated or persisted. Each variant
carries a ``kind`` literal so a sequence can be discriminated without
isinstance checks.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


# ── Inline spans ──────────────────────────────────────────────────


class TextSpan(BaseModel):
    """Plain text."""

    kind: Literal["text"] = "text"
    value: str


class BoldSpan(BaseModel):
    """Strong emphasis, delimiters removed."""

    kind: Literal["bold"] = "bold"
    value: str


class CodeSpan(BaseModel):
    """Inline code, delimiters removed."""

    kind: Literal["code"] = "code"
    value: str


Span = Annotated[TextSpan | BoldSpan | CodeSpan, Field(discriminator="kind")]


# ── Blocks ────────────────────────────────────────────────────────


class Heading(BaseModel):
    """A level 1–3 heading."""

    kind: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=3, description="Heading depth (number of # markers)")
    spans: list[Span] = Field(default_factory=list)


class Paragraph(BaseModel):
    """One line of ordinary text."""

    kind: Literal["paragraph"] = "paragraph"
    spans: list[Span] = Field(default_factory=list)


class ListItem(BaseModel):
    """A bullet or numbered list line with its marker stripped."""

    kind: Literal["list_item"] = "list_item"
    ordered: bool = Field(default=False, description="True for '1.'-style items")
    index: int | None = Field(default=None, description="Parsed number of an ordered item")
    spans: list[Span] = Field(default_factory=list)


class Rule(BaseModel):
    """A horizontal rule."""

    kind: Literal["rule"] = "rule"


class Spacer(BaseModel):
    """A blank line."""

    kind: Literal["spacer"] = "spacer"


class CodeBlock(BaseModel):
    """A fully delimited fenced code block."""

    kind: Literal["code_block"] = "code_block"
    language: str | None = Field(default=None, description="Tag after the opening fence")
    raw_text: str = Field(description="Code exactly as written between the fences")


Block = Annotated[
    Heading | Paragraph | ListItem | Rule | Spacer | CodeBlock,
    Field(discriminator="kind"),
]
