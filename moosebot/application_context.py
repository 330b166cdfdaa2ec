"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .api.moose import MooseAPI
from .config.model import BotConfig
from .constants import MOOSE_HTTP_TIMEOUT_SECONDS, USER_AGENT
from .invites.store import InviteStore
from .logging_config import error_aggregator
from .rate.gate import RateGate


class ApplicationContext:
    """Holds everything the router shares between concurrently handled events.

    Attributes:
        config: Static bot configuration.
        api: Moose service client.
        gate: Process-wide cooldown gate for moose lookups.
        invites: Invite store, or None when invites are disabled.
        session: The aiohttp session owned by this context, if any.
    """

    def __init__(
        self,
        config: BotConfig,
        api: MooseAPI,
        gate: RateGate,
        invites: InviteStore | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.config = config
        self.api = api
        self.gate = gate
        self.invites = invites
        self.session = session
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(cls, config: BotConfig) -> ApplicationContext:
        """Build the context: load invites, open the HTTP session.

        Raises:
            ConfigError: If the invite file exists but is unusable.
        """
        logging.debug("🧪 Creating application context")
        invites: InviteStore | None = None
        if config.invite_file:
            invites = InviteStore(config.invite_file)
            invites.load()
        else:
            logging.info("🚫 Invites disabled (no invite file configured)")
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=MOOSE_HTTP_TIMEOUT_SECONDS),
            headers={"User-Agent": USER_AGENT},
        )
        logging.debug("🔗 HTTP session created")
        return cls(
            config=config,
            api=MooseAPI(session, config.moose_url),
            gate=RateGate(config.moose_delay),
            invites=invites,
            session=session,
        )

    # --------------------------- Lifecycle -------------------------- #
    async def shutdown(self) -> None:
        """Close the HTTP session and report errors seen during the run."""
        async with self._lock:
            logging.info("🔻 Application context shutdown initiated")
            if self.session and not self.session.closed:
                try:
                    await self.session.close()
                    logging.debug("🔒 HTTP session closed")
                except (aiohttp.ClientError, OSError) as e:
                    logging.warning(f"⚠️ Error closing HTTP session: {e}")
            self.session = None
            error_aggregator.log_summary_report()
            logging.info("✅ Application context shutdown complete")
