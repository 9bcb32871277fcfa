"""chatstream: streaming chat client with structured text rendering."""

__version__ = "0.1.0"

from .rendering.blocks import render_blocks
from .rendering.inline import render_inline
from .schemas.messages import Message, Role
from .schemas.streaming import Delta

__all__ = ["Delta", "Message", "Role", "render_blocks", "render_inline"]
