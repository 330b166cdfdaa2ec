"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the per-event error policy
of the bot. Only raise these inside application/network boundaries – never
surface raw aiohttp / JSON / OS errors to the router; wrap them instead.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transport failures talking to the moose service.
  ParsingError         – Malformed responses (bad JSON, over-long lines).
  MooseNotFoundError   – The requested moose does not exist.
  PersistenceError     – Invite file could not be written; state rolled back.
  ConfigError          – Unrecoverable startup configuration problem.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message, safe to show in chat.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    Covers connection failures, timeouts and unexpected HTTP statuses from
    the moose service. These are reported to the requester, never retried.
    """


class ParsingError(InternalError):
    """Exception raised for response parsing errors.

    Includes invalid JSON bodies and IRC art lines exceeding the maximum
    accepted length.
    """


class MooseNotFoundError(InternalError):
    """Exception raised when the moose service has no such moose."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(message or "No such moose.", data={"moose": name})
        self.name = name


class PersistenceError(InternalError):
    """Exception raised when the invite file could not be replaced."""


class ConfigError(InternalError):
    """Exception raised for fatal configuration or startup file errors."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "MooseNotFoundError",
    "PersistenceError",
    "ConfigError",
]
