"""Single-flight cooldown gate for moose service lookups."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ..constants import MOOSE_COOLDOWN_SECONDS


class AtomicTimestamp:
    """A timestamp cell supporting compare-and-swap.

    ``None`` means no dispatch has been accepted yet. The internal lock only
    makes the compare and the store indivisible; callers never hold it.
    """

    def __init__(self, value: float | None = None) -> None:
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> float | None:
        return self._value

    def compare_and_swap(self, expected: float | None, new: float) -> bool:
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True


class RateGate:
    """Accept at most one lookup per cooldown window; reject the rest.

    Rejected callers are not queued. A window of zero disables the gate.
    """

    def __init__(
        self,
        window: float = MOOSE_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self._clock = clock
        self._last = AtomicTimestamp()

    @property
    def last_accepted(self) -> float | None:
        return self._last.load()

    def try_acquire(self) -> bool:
        if self.window <= 0:
            return True
        observed = self._last.load()
        while True:
            now = self._clock()
            if observed is not None and now - observed <= self.window:
                return False
            if self._last.compare_and_swap(observed, now):
                return True
            # Lost the race: someone else opened the gate, re-check the window.
            observed = self._last.load()

    def retry_after(self) -> float:
        """Seconds until the next acquire could succeed (0 when open)."""
        observed = self._last.load()
        if self.window <= 0 or observed is None:
            return 0.0
        return max(0.0, self.window - (self._clock() - observed))
