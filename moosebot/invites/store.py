"""Durable set of channels the bot joined by invitation.

The on-disk file is a JSON array of channel names. Every change rewrites the
whole set through a temp file in the same directory which is fsynced and then
renamed over the target, so a crash leaves either the old or the new snapshot.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..errors.handling import log_error
from ..errors.internal import ConfigError, PersistenceError


class InviteStore:
    """In-memory invite set mirrored to a JSON file.

    Mutations are serialized by one asyncio lock spanning the whole
    read-modify-persist sequence. Membership reads do not take the lock.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if not str(path).strip():
            raise ConfigError("Invite file path must not be empty")
        self.path = Path(path)
        self._invites: set[str] = set()
        self._lock = asyncio.Lock()

    # ---------------------------- Startup ---------------------------- #
    def load(self) -> set[str]:
        """Read the invite file, creating it with ``[]`` when missing.

        Raises:
            ConfigError: If the file is not a JSON array of strings or cannot
                be created.
        """
        if not self.path.exists():
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._write_snapshot([])
            except (OSError, PersistenceError) as e:
                raise ConfigError(
                    f"Could not create missing invite file {self.path}: {e}",
                    data={"path": str(self.path)},
                ) from e
            logging.info(f"📄 Created empty invite file path={self.path}")
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(
                f"Cannot read invite file {self.path}: {e}",
                data={"path": str(self.path)},
            ) from e
        if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
            raise ConfigError(
                f"Invite file {self.path} must be a JSON array of channel names",
                data={"path": str(self.path)},
            )
        self._invites = set(data)
        logging.info(f"📨 Loaded invites count={len(self._invites)} path={self.path}")
        return set(self._invites)

    def union(self, configured: Iterable[str]) -> list[str]:
        """Merge configured channels with the invites into a join list.

        Configured channels keep their order and come first; invited channels
        not already configured follow in sorted order. The durable set itself
        keeps only invited channels.
        """
        merged = dict.fromkeys(configured)
        for channel in sorted(self._invites):
            merged.setdefault(channel)
        return list(merged)

    # ---------------------------- Queries ---------------------------- #
    def contains(self, channel: str) -> bool:
        return channel in self._invites

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._invites)

    @property
    def invites(self) -> frozenset[str]:
        return frozenset(self._invites)

    # --------------------------- Mutations --------------------------- #
    async def add(self, channel: str) -> bool:
        """Add a channel and persist. Returns False if persisting failed."""
        return await self._mutate(channel, add=True)

    async def remove(self, channel: str) -> bool:
        """Remove a channel and persist. Absent channels are a no-op."""
        return await self._mutate(channel, add=False)

    async def _mutate(self, channel: str, *, add: bool) -> bool:
        async with self._lock:
            previous = set(self._invites)
            if add:
                self._invites.add(channel)
            else:
                self._invites.discard(channel)
            if self._invites == previous:
                return True
            snapshot = sorted(self._invites)
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self._write_snapshot, snapshot)
            except (OSError, TypeError, ValueError, PersistenceError) as e:
                self._invites = previous
                log_error(
                    "Failed to persist invites; rolled back",
                    e,
                    context={"channel": channel, "action": "add" if add else "remove"},
                )
                return False
            logging.debug(
                f"💾 Invites saved count={len(snapshot)} action={'add' if add else 'remove'} channel={channel}"
            )
            return True

    def _write_snapshot(self, channels: list[str]) -> None:
        """Atomically replace the invite file with ``channels``."""
        payload = json.dumps(channels).encode("utf-8")
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                buffering=0,
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                temp_path = tmp.name
                written = tmp.write(payload)
                if written != len(payload):
                    raise PersistenceError(
                        f"Short write to {temp_path}: {written}/{len(payload)}"
                    )
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(temp_path, self.path)
            temp_path = None
            self._fsync_dir()
        finally:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass

    def _fsync_dir(self) -> None:
        # Make the rename itself durable; not every platform allows it.
        try:
            fd = os.open(self.path.parent, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError:
            pass
        finally:
            os.close(fd)
