"""Bot lifecycle: connect, route events, reconnect, shut down."""

from __future__ import annotations

import asyncio
import logging
import signal

from ..application_context import ApplicationContext
from ..config.model import BotConfig
from ..constants import (
    RECONNECT_INITIAL_BACKOFF,
    RECONNECT_MAX_ATTEMPTS,
    RECONNECT_MAX_BACKOFF,
)
from ..errors.handling import handle_retryable_error
from ..irc.client import IRCClient
from ..logs.logger import logger
from .router import EventRouter

QUIT_MESSAGE = "Moose out."


class BotRunner:
    """Owns the IRC client and the context for a single network."""

    def __init__(self, context: ApplicationContext, client: IRCClient | None = None):
        self.context = context
        self.client = client or IRCClient(context.config)
        self.router = EventRouter(context, self.client)
        self.client.set_event_handler(self.router.handle)
        self.shutdown_initiated = False
        self._quit_task: asyncio.Task[None] | None = None

    async def _connect(self, attempt: int) -> None:
        if self.shutdown_initiated:
            return
        if attempt > 1:
            logger.log_event(
                "manager", "reconnect_attempt", nick=self.client.current_nick, attempt=attempt
            )
        await self.client.connect()

    async def run(self) -> None:
        """Connect and listen until the bot quits or reconnects are exhausted.

        A stop() that lands while connecting closes the new session instead
        of listening on it.

        Raises:
            NetworkError: If the server stays unreachable.
        """
        while not self.shutdown_initiated:
            await handle_retryable_error(
                self._connect,
                "irc connect",
                max_attempts=RECONNECT_MAX_ATTEMPTS,
                initial_backoff=RECONNECT_INITIAL_BACKOFF,
                max_backoff=RECONNECT_MAX_BACKOFF,
            )
            if self.shutdown_initiated:
                # The QUIT sent by stop() went nowhere if we were between sessions.
                await self.client.quit(QUIT_MESSAGE)
                await self.client.disconnect()
                break
            await self.client.listen()
            if self.client.quit_requested or self.shutdown_initiated:
                break
            logger.log_event(
                "manager", "connection_dropped", level=logging.WARNING, nick=self.client.current_nick
            )
        await self.client.drain_tasks()

    def stop(self) -> None:
        """Ask the server to close the session; listen() returns afterwards."""
        if self.shutdown_initiated:
            return
        self.shutdown_initiated = True
        logger.log_event("manager", "shutdown_requested", level=logging.WARNING)
        self._quit_task = asyncio.get_running_loop().create_task(self.client.quit(QUIT_MESSAGE))

    def setup_signal_handlers(self) -> None:  # pragma: no cover
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except NotImplementedError:
                logging.debug(f"Signal handlers unsupported for {sig!r}")


async def run_bot(config: BotConfig) -> None:
    """Run the bot for ``config`` until it quits.

    Raises:
        ConfigError: If the invite file cannot be loaded.
        NetworkError: If the server cannot be reached.
    """
    context = await ApplicationContext.create(config)
    runner = BotRunner(context)
    runner.setup_signal_handlers()
    try:
        await runner.run()
    finally:
        await context.shutdown()
