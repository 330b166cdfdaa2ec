"""Invite persistence."""

from .store import InviteStore  # noqa: F401

__all__ = ["InviteStore"]
