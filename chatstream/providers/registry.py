"""Model registry and TOML configuration loader.

Loads model definitions from models.toml and chat defaults from
defaults.toml, and builds providers for registry entries.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import httpx

from chatstream.providers.sse_provider import SSEChatProvider
from chatstream.schemas.config import ChatConfig, ModelConfig

# Default config directory relative to the chatstream package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_models(config_path: Path | None = None) -> dict[str, ModelConfig]:
    """Load the model registry from a TOML file.

    Args:
        config_path: Path to models.toml. Defaults to chatstream/config/models.toml.

    Returns:
        Dictionary mapping model keys to ModelConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "models.toml"
    if not path.exists():
        raise FileNotFoundError(f"Model registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    models_section = raw.get("models")
    if not models_section or not isinstance(models_section, dict):
        raise ValueError(f"No [models] section found in {path}")

    return {
        key: ModelConfig(**entry)
        for key, entry in models_section.items()
        if isinstance(entry, dict)
    }


def load_chat_config(config_path: Path | None = None) -> ChatConfig:
    """Load chat defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to chatstream/config/defaults.toml.

    Returns:
        ChatConfig with values from the file's [chat] table.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Chat config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    return ChatConfig(**raw.get("chat", {}))


def build_provider(
    key: str,
    registry: dict[str, ModelConfig],
    config: ChatConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SSEChatProvider:
    """Create the provider for registry entry ``key``.

    Raises:
        ValueError: If ``key`` is not in the registry.
    """
    if key not in registry:
        raise ValueError(f"Unknown model '{key}' (known: {', '.join(sorted(registry))})")
    return SSEChatProvider(
        registry[key],
        timeout=config.timeout,
        max_retries=config.max_retries,
        transport=transport,
    )
