"""IRC transport: line codec, event vocabulary and the async client."""

from .client import ConnectionState, IRCClient  # noqa: F401
from .events import ChatEvent, ChatSink, EventKind, event_from_message  # noqa: F401
from .parser import IRCMessage, format_line, join_lines, parse_irc_message  # noqa: F401

__all__ = [
    "ChatEvent",
    "ChatSink",
    "ConnectionState",
    "EventKind",
    "IRCClient",
    "IRCMessage",
    "event_from_message",
    "format_line",
    "join_lines",
    "parse_irc_message",
]
