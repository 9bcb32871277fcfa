"""Pydantic schemas shared across chatstream."""

from chatstream.schemas.blocks import (
    Block,
    BoldSpan,
    CodeBlock,
    CodeSpan,
    Heading,
    ListItem,
    Paragraph,
    Rule,
    Spacer,
    Span,
    TextSpan,
)
from chatstream.schemas.config import ChatConfig, ModelConfig
from chatstream.schemas.messages import ChatSession, Message, Role
from chatstream.schemas.streaming import Delta, StreamOutcome

__all__ = [
    "Block",
    "BoldSpan",
    "ChatConfig",
    "ChatSession",
    "CodeBlock",
    "CodeSpan",
    "Delta",
    "Heading",
    "ListItem",
    "Message",
    "ModelConfig",
    "Paragraph",
    "Role",
    "Rule",
    "Spacer",
    "Span",
    "StreamOutcome",
    "TextSpan",
]
