"""Configuration package exports."""

from .loader import EXAMPLE_CONFIG, load_config, write_example_config  # noqa: F401
from .model import BotConfig, parse_duration  # noqa: F401

__all__ = [
    "BotConfig",
    "EXAMPLE_CONFIG",
    "load_config",
    "parse_duration",
    "write_example_config",
]
