"""Event logging for the bot: the template catalog and BotLogger."""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates  # noqa: F401
from .logger import BotLogger, logger  # noqa: F401

__all__ = ["BotLogger", "EVENT_TEMPLATES", "logger", "reload_event_templates"]
