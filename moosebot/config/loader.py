"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from ..errors.internal import ConfigError
from .model import BotConfig

EXAMPLE_CONFIG = """{ "nick": "MrMoose"
, "host": "irc.rizon.net:6697"
, "// pass": "you can prefix any field with // to comment it out."
, "pass": "server pass, omit or leave empty."
, "//": "uses NICKSERV IDENTIFY :PASSWORD"
, "nickserv": "nickserv password."
, "tls": true
, "channels":
  [ "#moose-irc2"
  ]
, "//": "how long to wait between lines sent to the server."
, "send-delay": "350ms"
, "//": "time to delay before allowing another moose request."
, "moose-delay": "10s"
, "moose-url": "https://moose2.ghetty.space"
, "//": "you can leave it undefined or blank to disable invites."
, "invite-file": "file to persist invites"
, "//": "some networks may ban you for certain texts that may be repeated in a moose name (Rizon)."
, "disable-search": false
, "//": "relay bots that prefix messages with <nick>."
, "gateway-users": []
}
"""


def load_config(config_file: str | os.PathLike[str]) -> BotConfig:
    """Load and validate the bot configuration.

    Args:
        config_file: Path to the JSON configuration file.

    Returns:
        Validated BotConfig instance.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    path = Path(config_file)
    try:
        with path.open(encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Configuration file not found: {path}", data={"path": str(path)}
        ) from e
    except (OSError, ValueError) as e:
        raise ConfigError(
            f"Failed to read configuration {path}: {e}", data={"path": str(path)}
        ) from e
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Configuration {path} must be a JSON object", data={"path": str(path)}
        )
    raw = {k: v for k, v in raw.items() if not str(k).startswith("//")}
    try:
        config = BotConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration {path}: {e}", data={"path": str(path)}
        ) from e
    logging.info(
        f"✅ Configuration loaded nick={config.nick} host={config.host} channels={len(config.channels)}"
    )
    return config


def write_example_config(config_file: str | os.PathLike[str]) -> Path:
    """Write the example configuration, creating parent directories.

    Raises:
        ConfigError: If the file cannot be written.
    """
    path = Path(config_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to create config: {e}", data={"path": str(path)}) from e
    logging.info(f"📝 Created example configuration at {path}")
    return path
