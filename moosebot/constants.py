"""
Tunables for the moose IRC bot

Every numeric constant below can be overridden with an environment variable
of the same name; unparsable overrides are reported and ignored.
"""

import os
from collections.abc import Callable
from typing import TypeVar

APP_NAME = "moosebot"
APP_VERSION = "0.4.0"
USER_AGENT = f"{APP_NAME}/{APP_VERSION}"

N = TypeVar("N", int, float)


def _get_env(name: str, default: N, cast: Callable[[str], N]) -> N:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        print(f"Warning: ignoring {name}={raw!r}, expected {cast.__name__}; using {default}")
        return default


def _get_env_int(name: str, default: int) -> int:
    """Integer override from the environment, or ``default``."""
    return _get_env(name, default, int)


def _get_env_float(name: str, default: float) -> float:
    """Float override from the environment, or ``default``."""
    return _get_env(name, default, float)


# Moose service
DEFAULT_MOOSE_URL = os.getenv("DEFAULT_MOOSE_URL", "https://moose2.ghetty.space")
MOOSE_COOLDOWN_SECONDS = _get_env_float(
    "MOOSE_COOLDOWN_SECONDS", 10.0
)  # Default window between accepted moose lookups
MOOSE_HTTP_TIMEOUT_SECONDS = _get_env_float(
    "MOOSE_HTTP_TIMEOUT_SECONDS", 5.0
)  # Total timeout for a single moose service request
MOOSE_MAX_LINE_BYTES = _get_env_int(
    "MOOSE_MAX_LINE_BYTES", 1024
)  # Longest acceptable line in an /irc/ response
MOOSE_MAX_BODY_BYTES = _get_env_int(
    "MOOSE_MAX_BODY_BYTES", 1048576
)  # Upper bound on bytes read from any moose response (1 MiB)
MOOSE_MAX_SEARCH_RESULTS = _get_env_int(
    "MOOSE_MAX_SEARCH_RESULTS", 12
)  # Search results included in a single reply

# IRC
IRC_MAX_LINE_LENGTH = _get_env_int(
    "IRC_MAX_LINE_LENGTH", 510
)  # Bytes per line excluding CRLF
IRC_CONNECT_TIMEOUT = _get_env_float("IRC_CONNECT_TIMEOUT", 30.0)
IRC_DEFAULT_PORT = _get_env_int("IRC_DEFAULT_PORT", 6667)
IRC_DEFAULT_TLS_PORT = _get_env_int("IRC_DEFAULT_TLS_PORT", 6697)
IRC_MAX_NICK_RENAMES = _get_env_int(
    "IRC_MAX_NICK_RENAMES", 3
)  # Give up after this many collision renames
IRC_NICK_CONFLICT_FILLER = "_"

# Reconnect
RECONNECT_MAX_ATTEMPTS = _get_env_int(
    "RECONNECT_MAX_ATTEMPTS", 10
)  # Connection attempts before the bot gives up
RECONNECT_INITIAL_BACKOFF = _get_env_float(
    "RECONNECT_INITIAL_BACKOFF", 1.0
)  # First wait between attempts, doubled each time
RECONNECT_MAX_BACKOFF = _get_env_float(
    "RECONNECT_MAX_BACKOFF", 60.0
)  # Ceiling for the wait between attempts
