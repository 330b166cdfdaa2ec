"""Async IRC client: connection, registration, ingestion and outbound lines."""

from __future__ import annotations

import asyncio
import logging
import ssl
import time
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum, auto

from ..config.model import BotConfig
from ..constants import (
    APP_NAME,
    IRC_CONNECT_TIMEOUT,
    IRC_MAX_NICK_RENAMES,
    IRC_NICK_CONFLICT_FILLER,
)
from ..errors.internal import NetworkError
from ..logs.logger import logger
from .events import ChatEvent, event_from_message
from .parser import IRCMessage, format_line, join_lines, parse_irc_message

EventHandler = Callable[[ChatEvent], Awaitable[None]]


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    REGISTERING = auto()
    READY = auto()


def _clean(text: str) -> str:
    # Outbound text must never smuggle extra protocol lines.
    return text.replace("\r", " ").replace("\n", " ")


class IRCClient:  # pylint: disable=too-many-instance-attributes
    """Thin IRC transport implementing the router's ChatSink.

    Each inbound event is handled on its own task so a slow moose lookup
    never stalls ingestion of the lines that follow it.
    """

    def __init__(self, config: BotConfig, handler: EventHandler | None = None):
        self.config = config
        self.original_nick = config.nick
        self._nick = config.nick
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.state = ConnectionState.DISCONNECTED
        self.event_handler = handler
        self.send_delay = config.send_delay
        self.quit_requested = False
        self._send_lock = asyncio.Lock()
        self._last_send = 0.0
        self._tasks: set[asyncio.Task[None]] = set()

    # ---------------------------- State ---------------------------- #
    @property
    def current_nick(self) -> str:
        return self._nick

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                nick=self._nick,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    def set_event_handler(self, handler: EventHandler) -> None:
        self.event_handler = handler

    # -------------------------- Connection -------------------------- #
    async def connect(self) -> None:
        """Open the connection and send the registration preamble.

        Raises:
            NetworkError: If the server cannot be reached in time.
        """
        host, port = self.config.host_port()
        self._nick = self.original_nick
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "irc", "connect_start", nick=self._nick, server=host, port=port, tls=self.config.tls
        )
        ssl_context = ssl.create_default_context() if self.config.tls else None
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(host, port, ssl=ssl_context),
                timeout=IRC_CONNECT_TIMEOUT,
            )
        except TimeoutError as e:
            self._set_state(ConnectionState.DISCONNECTED)
            raise NetworkError(f"Timed out connecting to {host}:{port}") from e
        except OSError as e:
            self._set_state(ConnectionState.DISCONNECTED)
            raise NetworkError(f"Could not connect to {host}:{port}: {e}") from e

        self._set_state(ConnectionState.REGISTERING)
        if self.config.password:
            await self._send_line(format_line("PASS", self.config.password))
        await self._send_line(format_line("NICK", self._nick))
        await self._send_line(format_line("USER", APP_NAME, "0", "*", self._nick))
        logger.log_event("irc", "auth_sent", level=logging.DEBUG, nick=self._nick)

    async def listen(self) -> None:
        """Read lines until the server closes the connection or we quit."""
        if not self.reader:
            raise NetworkError("listen() called before connect()")
        try:
            while True:
                try:
                    data = await self.reader.readline()
                except ValueError:
                    logger.log_event("irc", "junk_line", level=logging.ERROR, nick=self._nick)
                    break
                if not data:
                    logger.log_event("irc", "server_closed", level=logging.WARNING, nick=self._nick)
                    break
                line = data.decode("utf-8", errors="replace").strip("\r\n")
                if line:
                    await self.handle_line(line)
                if self.quit_requested:
                    break
        except (ConnectionError, OSError) as e:
            logger.log_event(
                "irc", "connection_lost", level=logging.ERROR, nick=self._nick, error=str(e)
            )
        finally:
            await self.disconnect()

    async def handle_line(self, raw_line: str) -> None:
        msg = parse_irc_message(raw_line)
        if msg.command != "PING":
            logger.log_event("irc", "raw", level=logging.DEBUG, nick=self._nick, raw=raw_line)
        if await self._handle_connection_message(msg):
            return
        event = event_from_message(msg)
        if event is not None:
            self._dispatch(event)

    async def _handle_connection_message(self, msg: IRCMessage) -> bool:
        """Handle lines that concern the connection itself. True if consumed."""
        command = msg.command
        if command == "PING":
            await self._send_line(format_line("PONG", *(msg.params or [self.config.host])))
            return True
        if command == "001":
            if msg.params:
                self._nick = msg.params[0]
            self._set_state(ConnectionState.READY)
            logger.log_event("irc", "connected", nick=self._nick)
            return False
        if command == "NICK" and msg.nick == self._nick and msg.params:
            self._nick = msg.params[0]
            return True
        if command == "ERROR":
            logger.log_event(
                "irc",
                "server_error",
                level=logging.ERROR,
                nick=self._nick,
                reason=msg.params[-1] if msg.params else "",
            )
            await self.quit()
            return True
        if command == "432":
            logger.log_event("irc", "nick_rejected", level=logging.ERROR, nick=self._nick)
            await self.quit()
            return True
        if command in ("433", "436"):
            await self._handle_nick_collision()
            return True
        return False

    async def _handle_nick_collision(self) -> None:
        self._nick += IRC_NICK_CONFLICT_FILLER
        renames = len(self._nick) - len(self.original_nick)
        logger.log_event(
            "irc", "nick_collision", level=logging.WARNING, nick=self._nick, renames=renames
        )
        if renames > IRC_MAX_NICK_RENAMES:
            logger.log_event("irc", "nick_collision_limit", level=logging.ERROR, nick=self._nick)
            await self.quit()
            return
        await self._send_line(format_line("NICK", self._nick))

    # --------------------------- Dispatch --------------------------- #
    def _dispatch(self, event: ChatEvent) -> None:
        if not self.event_handler:
            logger.log_event("irc", "no_event_handler", level=logging.WARNING, nick=self._nick)
            return
        task = asyncio.create_task(self._run_handler(self.event_handler, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_handler(self, handler: EventHandler, event: ChatEvent) -> None:
        try:
            await handler(event)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "router",
                "handler_error",
                level=logging.ERROR,
                nick=self._nick,
                channel=event.channel,
                event=event.kind.name,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def drain_tasks(self) -> None:
        """Wait for in-flight event handlers to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --------------------------- Outbound --------------------------- #
    async def _send_line(self, line: str) -> None:
        if not self.writer:
            logger.log_event("irc", "send_without_connection", level=logging.DEBUG, nick=self._nick)
            return
        async with self._send_lock:
            if self.send_delay > 0:
                wait = self.send_delay - (time.monotonic() - self._last_send)
                if wait > 0:
                    await asyncio.sleep(wait)
            self.writer.write(f"{line}\r\n".encode())
            await self.writer.drain()
            self._last_send = time.monotonic()

    async def join(self, channels: Iterable[str]) -> None:
        for line in join_lines(channels):
            await self._send_line(line)

    async def privmsg(self, target: str, text: str) -> None:
        await self._send_line(format_line("PRIVMSG", target, _clean(text)))

    async def notice(self, target: str, text: str) -> None:
        await self._send_line(format_line("NOTICE", target, _clean(text)))

    async def identify(self, password: str) -> None:
        await self._send_line(format_line("NICKSERV", "IDENTIFY", password))

    async def quit(self, reason: str | None = None) -> None:
        self.quit_requested = True
        if reason:
            await self._send_line(format_line("QUIT", reason))
        else:
            await self._send_line("QUIT")

    async def disconnect(self) -> None:
        if self.writer:
            try:
                self.writer.close()
                await self.writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.log_event(
                    "irc", "close_error", level=logging.DEBUG, nick=self._nick, error=str(e)
                )
            finally:
                self.writer = None
                self.reader = None
        if self.state != ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DISCONNECTED)
            logger.log_event("irc", "disconnected", level=logging.WARNING, nick=self._nick)
