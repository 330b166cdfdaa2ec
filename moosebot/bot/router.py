"""Per-event dispatch for the moose bot.

Every inbound ChatEvent is handled independently given the current invite
set and cooldown state. Failures stay inside the event that caused them and
produce at most one reply.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..constants import APP_NAME, APP_VERSION
from ..errors.handling import log_error
from ..errors.internal import InternalError, MooseNotFoundError
from ..irc.events import ChatEvent, ChatSink, EventKind
from ..logs.logger import logger
from .commands import Command, CommandKind, parse_command

if TYPE_CHECKING:
    from ..application_context import ApplicationContext

CTCP_VERSION = "\x01VERSION\x01"
COOLDOWN_NOTICE = "Please wait before asking for another moose."
INVITES_DISABLED_NOTICE = "Invites are disabled."
HELP_TEXT = (
    "usage: ^[.!]?moose(?:img|search|me)? "
    "[--latest|--random|--search|--image|--oldest|--] [moosename]"
)


class EventRouter:
    """Route chat events to the parser, the invite store and the moose API.

    Args:
        context: Shared resources (config, API client, cooldown gate, invites).
        sink: Transport used for every outbound action.
    """

    def __init__(self, context: ApplicationContext, sink: ChatSink) -> None:
        self.context = context
        self.config = context.config
        self.sink = sink

    # --------------------------- Entry point --------------------------- #
    async def handle(self, event: ChatEvent) -> None:
        match event.kind:
            case EventKind.WELCOME:
                await self._on_welcome()
            case EventKind.INVITE:
                await self._on_invite(event)
            case EventKind.PART:
                if event.sender == self.sink.current_nick:
                    await self._forget_channel(event.channel, "parted")
            case EventKind.KICK:
                if event.target == self.sink.current_nick:
                    await self._forget_channel(event.channel, event.text or "kicked")
            case EventKind.JOIN:
                if event.sender == self.sink.current_nick:
                    logger.log_event("router", "joined", nick=event.sender, channel=event.channel)
            case EventKind.MESSAGE:
                await self._on_message(event)

    # ------------------------- Membership events ------------------------ #
    def join_list(self) -> list[str]:
        invites = self.context.invites
        if invites is None:
            return list(self.config.channels)
        return invites.union(self.config.channels)

    async def _on_welcome(self) -> None:
        nick = self.sink.current_nick
        if self.config.nickserv:
            await self.sink.identify(self.config.nickserv)
            logger.log_event("router", "identify_sent", level=logging.DEBUG, nick=nick)
        channels = self.join_list()
        if channels:
            await self.sink.join(channels)
        logger.log_event("router", "welcome_join", nick=nick, count=len(channels))

    async def _on_invite(self, event: ChatEvent) -> None:
        if event.target != self.sink.current_nick:
            return
        invites = self.context.invites
        if invites is None:
            await self.sink.notice(event.sender, INVITES_DISABLED_NOTICE)
            logger.log_event(
                "router", "invite_rejected", channel=event.channel, sender=event.sender
            )
            return
        if event.channel in invites:
            return
        await self.sink.join([event.channel])
        if await invites.add(event.channel):
            logger.log_event(
                "router", "invite_accepted", channel=event.channel, sender=event.sender
            )

    async def _forget_channel(self, channel: str, reason: str) -> None:
        invites = self.context.invites
        if invites is None or channel not in invites:
            return
        if await invites.remove(channel):
            logger.log_event("router", "invite_removed", channel=channel, reason=reason)

    # ----------------------------- Messages ----------------------------- #
    def reply_target(self, event: ChatEvent) -> str:
        if event.channel == self.sink.current_nick:
            return event.sender
        return event.channel

    async def _on_message(self, event: ChatEvent) -> None:
        if event.text == CTCP_VERSION and event.channel == self.sink.current_nick:
            await self.sink.notice(event.sender, f"\x01VERSION {APP_NAME}/{APP_VERSION}\x01")
            return

        text = event.text
        is_gateway = event.sender in self.config.gateway_users
        if is_gateway:
            # Relays prefix the real sender as "<nick> "; nicks carry no spaces.
            _, sep, rest = text.partition(" ")
            if sep:
                text = rest
        command = parse_command(text.strip())
        if is_gateway and command.kind is CommandKind.RESOLVE:
            command = Command(CommandKind.IMAGE, command.target)

        target = self.reply_target(event)
        if command.is_lookup:
            await self._lookup(command, event, target)
            return
        match command.kind:
            case CommandKind.SEARCH:
                await self._search(command.target, event, target)
            case CommandKind.BOTS_INFO:
                await self.sink.privmsg(
                    target,
                    f"Moose :: Make moose @ {self.config.moose_url} :: See .moose --help for usage",
                )
            case CommandKind.HELP:
                await self.sink.privmsg(target, HELP_TEXT)
            case CommandKind.INVALID:
                return

    async def _lookup(self, command: Command, event: ChatEvent, target: str) -> None:
        gate = self.context.gate
        if not gate.try_acquire():
            logger.log_event(
                "router",
                "cooldown",
                level=logging.DEBUG,
                nick=event.sender,
                channel=target,
                retry_after=f"{gate.retry_after():.1f}",
            )
            await self.sink.notice(event.sender, COOLDOWN_NOTICE)
            return
        api = self.context.api
        logger.log_event(
            "router",
            "lookup",
            level=logging.DEBUG,
            nick=event.sender,
            channel=target,
            moose=command.target,
            kind=command.kind.name,
        )
        try:
            name = await api.resolve(command.target)
            lines = (
                await api.fetch_irc_lines(name)
                if command.kind is CommandKind.RESOLVE
                else []
            )
        except MooseNotFoundError:
            await self.sink.privmsg(target, f"No such moose: {command.target}")
            return
        except InternalError as e:
            await self._report_failure(target, event, e)
            return
        for line in lines:
            await self.sink.privmsg(target, line)
        await self.sink.privmsg(target, api.image_url(name))

    async def _search(self, query: str, event: ChatEvent, target: str) -> None:
        api = self.context.api
        if self.config.disable_search:
            await self.sink.privmsg(
                target, f"Search is disabled on this server. See: {api.gallery_url(query)}"
            )
            return
        try:
            results = await api.search(query)
        except InternalError as e:
            await self._report_failure(target, event, e)
            return
        if not results:
            await self.sink.privmsg(target, f"No moose found: {query}")
            return
        await self.sink.privmsg(
            target, ", ".join(f"\x02{r.name}\x02 p.{r.page}" for r in results)
        )

    async def _report_failure(self, target: str, event: ChatEvent, error: InternalError) -> None:
        log_error(
            "Moose request failed",
            error,
            {"sender": event.sender, "channel": event.channel},
        )
        await self.sink.privmsg(target, f"ERROR: {error}")
