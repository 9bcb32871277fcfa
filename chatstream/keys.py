"""API key loading for chatstream.

Keys are read with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.chatstream/keys.env
  3. .env in current directory
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from chatstream.schemas.config import ModelConfig

logger = logging.getLogger(__name__)

CHATSTREAM_HOME = Path.home() / ".chatstream"
KEYS_FILE = CHATSTREAM_HOME / "keys.env"


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load KEY=VALUE files into os.environ without overwriting set vars.

    Args:
        files: Files to read in priority order. Defaults to
            ~/.chatstream/keys.env then ./.env.
    """
    for env_file in files or [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def missing_keys(registry: dict[str, ModelConfig]) -> list[str]:
    """Return the key variables the registry needs that are not set."""
    needed = sorted({model.api_key_env for model in registry.values()})
    return [env_var for env_var in needed if not os.environ.get(env_var)]
