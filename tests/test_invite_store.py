import asyncio
import json
import os
import tempfile
from pathlib import Path

import pytest

from moosebot.errors.internal import ConfigError
from moosebot.invites.store import InviteStore


def test_load_creates_missing_file(tmp_path: Path):
    path = tmp_path / "nested" / "invites.json"
    store = InviteStore(path)
    assert store.load() == set()
    assert json.loads(path.read_text()) == []


def test_load_existing(tmp_path: Path):
    path = tmp_path / "invites.json"
    path.write_text('["#a", "#b"]')
    store = InviteStore(path)
    assert store.load() == {"#a", "#b"}
    assert "#a" in store
    assert store.contains("#b")
    assert len(store) == 2


@pytest.mark.parametrize("content", ["{not json", '{"#a": true}', '["#a", 3]', "null"])
def test_load_invalid_file_is_fatal(tmp_path: Path, content):
    path = tmp_path / "invites.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        InviteStore(path).load()


def test_empty_path_rejected():
    with pytest.raises(ConfigError):
        InviteStore("  ")


def test_union_keeps_configured_first(tmp_path: Path):
    path = tmp_path / "invites.json"
    path.write_text('["#zeta", "#moose", "#alpha"]')
    store = InviteStore(path)
    store.load()
    assert store.union(["#moose", "#other"]) == ["#moose", "#other", "#alpha", "#zeta"]
    # The durable set is still only the invited channels.
    assert store.invites == frozenset({"#zeta", "#moose", "#alpha"})


@pytest.mark.asyncio
async def test_add_survives_reload(tmp_path: Path):
    path = tmp_path / "invites.json"
    store = InviteStore(path)
    store.load()
    assert await store.add("#a")

    # Simulate a restart: a fresh store reads only what reached disk.
    reloaded = InviteStore(path)
    assert reloaded.load() == {"#a"}


@pytest.mark.asyncio
async def test_remove_persists(invite_store: InviteStore):
    await invite_store.add("#a")
    await invite_store.add("#b")
    assert await invite_store.remove("#a")
    assert json.loads(invite_store.path.read_text()) == ["#b"]


@pytest.mark.asyncio
async def test_failed_write_rolls_back(tmp_path: Path, monkeypatch):
    path = tmp_path / "invites.json"
    store = InviteStore(path)
    store.load()
    await store.add("#keep")
    before = path.read_bytes()

    def boom(*_args, **_kwargs):
        raise OSError("disk on fire")

    monkeypatch.setattr("moosebot.invites.store.os.replace", boom)

    assert await store.add("#new") is False
    assert store.invites == frozenset({"#keep"})
    assert path.read_bytes() == before
    # No stray temp files are left behind.
    assert [p.name for p in tmp_path.iterdir()] == ["invites.json"]


@pytest.mark.asyncio
async def test_short_write_rolls_back(invite_store: InviteStore, monkeypatch):
    await invite_store.add("#keep")
    before = invite_store.path.read_bytes()
    real_tempfile = tempfile.NamedTemporaryFile

    class ShortFile:
        """Unbuffered file whose write stops one byte early."""

        def __init__(self, inner):
            self.inner = inner

        def __enter__(self):
            self.inner.__enter__()
            return self

        def __exit__(self, *exc):
            return self.inner.__exit__(*exc)

        def __getattr__(self, name):
            return getattr(self.inner, name)

        def write(self, data: bytes) -> int:
            return self.inner.write(data[:-1])

    monkeypatch.setattr(
        "moosebot.invites.store.tempfile.NamedTemporaryFile",
        lambda **kwargs: ShortFile(real_tempfile(**kwargs)),
    )

    assert await invite_store.add("#new") is False
    assert invite_store.invites == frozenset({"#keep"})
    assert invite_store.path.read_bytes() == before
    assert [p.name for p in invite_store.path.parent.iterdir()] == [invite_store.path.name]

@pytest.mark.asyncio
async def test_failed_fsync_rolls_back_remove(invite_store: InviteStore, monkeypatch):
    await invite_store.add("#a")
    before = invite_store.path.read_bytes()

    def boom(_fd):
        raise OSError("fsync failed")

    monkeypatch.setattr("moosebot.invites.store.os.fsync", boom)
    assert await invite_store.remove("#a") is False
    assert "#a" in invite_store
    assert invite_store.path.read_bytes() == before


@pytest.mark.asyncio
async def test_remove_absent_is_noop(invite_store: InviteStore):
    await invite_store.add("#a")
    before = invite_store.path.read_bytes()
    mtime = os.stat(invite_store.path).st_mtime_ns

    assert await invite_store.remove("#missing")
    assert invite_store.path.read_bytes() == before
    assert os.stat(invite_store.path).st_mtime_ns == mtime
    assert json.loads(before) == ["#a"]


@pytest.mark.asyncio
async def test_concurrent_adds_are_not_lost(invite_store: InviteStore):
    channels = [f"#c{i}" for i in range(25)]
    results = await asyncio.gather(*(invite_store.add(c) for c in channels))
    assert all(results)
    assert invite_store.invites == frozenset(channels)
    assert sorted(json.loads(invite_store.path.read_text())) == sorted(channels)


@pytest.mark.asyncio
async def test_concurrent_add_remove_same_channel(invite_store: InviteStore):
    await asyncio.gather(
        invite_store.add("#x"), invite_store.remove("#x"), invite_store.add("#x")
    )
    on_disk = set(json.loads(invite_store.path.read_text()))
    assert on_disk == set(invite_store.invites)
