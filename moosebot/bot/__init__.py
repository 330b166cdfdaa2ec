"""Bot behaviour: command parsing, event routing and lifecycle."""

from .commands import COMMAND_ALIASES, Command, CommandKind, parse_command  # noqa: F401
from .manager import BotRunner, run_bot  # noqa: F401
from .router import EventRouter  # noqa: F401

__all__ = [
    "BotRunner",
    "COMMAND_ALIASES",
    "Command",
    "CommandKind",
    "EventRouter",
    "parse_command",
    "run_bot",
]
