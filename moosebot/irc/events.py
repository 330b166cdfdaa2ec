"""Chat event vocabulary shared by the transport and the router."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from .parser import IRCMessage

RPL_WELCOME = "001"


class EventKind(Enum):
    WELCOME = auto()
    JOIN = auto()
    PART = auto()
    KICK = auto()
    INVITE = auto()
    MESSAGE = auto()


@dataclass(frozen=True, slots=True)
class ChatEvent:
    """One inbound protocol event.

    Attributes:
        kind: Event type.
        sender: Nick (or server) that caused the event.
        channel: Channel concerned; for MESSAGE the PRIVMSG target, which is
            the bot's own nick for direct messages.
        target: Nick the event is aimed at (KICK victim, INVITE recipient).
        text: Message body, or kick reason.
    """

    kind: EventKind
    sender: str = ""
    channel: str = ""
    target: str = ""
    text: str = ""


def event_from_message(msg: IRCMessage) -> ChatEvent | None:
    """Translate a parsed IRC line into a ChatEvent, or None if irrelevant."""
    command, params, sender = msg.command, msg.params, msg.nick
    if command == RPL_WELCOME:
        return ChatEvent(EventKind.WELCOME, sender=sender)
    if command == "JOIN" and params:
        return ChatEvent(EventKind.JOIN, sender=sender, channel=params[0])
    if command == "PART" and params:
        return ChatEvent(EventKind.PART, sender=sender, channel=params[0])
    if command == "KICK" and len(params) >= 2:
        reason = params[2] if len(params) > 2 else ""
        return ChatEvent(
            EventKind.KICK, sender=sender, channel=params[0], target=params[1], text=reason
        )
    if command == "INVITE" and len(params) >= 2:
        return ChatEvent(EventKind.INVITE, sender=sender, target=params[0], channel=params[1])
    if command == "PRIVMSG" and len(params) >= 2:
        return ChatEvent(EventKind.MESSAGE, sender=sender, channel=params[0], text=params[1])
    return None


class ChatSink(Protocol):
    """Outbound actions the router may request from the transport."""

    @property
    def current_nick(self) -> str:
        """Nickname the bot is currently known by."""
        ...

    async def join(self, channels: Iterable[str]) -> None:
        """Join channels, batching as the protocol allows."""
        ...

    async def privmsg(self, target: str, text: str) -> None:
        """Send a message to a channel or nick."""
        ...

    async def notice(self, target: str, text: str) -> None:
        """Send a notice to a channel or nick."""
        ...

    async def identify(self, password: str) -> None:
        """Identify with the network's nick service."""
        ...
