"""chatstream provider layer.

Every model call goes through a ChatProvider; SSEChatProvider is the
streaming HTTP implementation.
"""

from chatstream.providers.base import ChatProvider
from chatstream.providers.registry import build_provider, load_chat_config, load_models
from chatstream.providers.sse_provider import SSEChatProvider

__all__ = [
    "ChatProvider",
    "SSEChatProvider",
    "build_provider",
    "load_chat_config",
    "load_models",
]
