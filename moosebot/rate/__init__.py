"""Cooldown gating for remote lookups."""

from .gate import AtomicTimestamp, RateGate  # noqa: F401

__all__ = ["AtomicTimestamp", "RateGate"]
