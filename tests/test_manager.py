import asyncio
import json

import aiohttp
import pytest

from moosebot.application_context import ApplicationContext
from moosebot.bot.manager import QUIT_MESSAGE, BotRunner
from moosebot.irc.client import IRCClient
from moosebot.irc.events import ChatEvent, EventKind


class FakeClient:
    """Scripted IRC client: each listen() replays one batch of events."""

    def __init__(self, sessions: list[list[ChatEvent]], quit_after: int) -> None:
        self.sessions = sessions
        self.quit_after = quit_after
        self.connects = 0
        self.quit_requested = False
        self.handler = None
        self.sent: list[tuple] = []
        self.current_nick = "MrMoose"

    def set_event_handler(self, handler) -> None:
        self.handler = handler

    async def connect(self) -> None:
        self.connects += 1
        if self.connects == 1:
            raise ConnectionRefusedError("not yet")

    async def listen(self) -> None:
        for event in self.sessions.pop(0):
            await self.handler(event)
        if not self.sessions or self.connects > self.quit_after:
            self.quit_requested = True

    async def drain_tasks(self) -> None:
        return None

    async def disconnect(self) -> None:
        self.sent.append(("disconnect",))

    async def quit(self, reason=None) -> None:
        self.quit_requested = True
        self.sent.append(("quit", reason))

    async def join(self, channels) -> None:
        self.sent.append(("join", list(channels)))

    async def privmsg(self, target, text) -> None:
        self.sent.append(("privmsg", target, text))

    async def notice(self, target, text) -> None:
        self.sent.append(("notice", target, text))

    async def identify(self, password) -> None:
        self.sent.append(("identify", password))


@pytest.mark.asyncio
async def test_runner_retries_connect_and_reconnects_after_drop(make_context, monkeypatch):
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_INITIAL_BACKOFF", 0)
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_MAX_BACKOFF", 0)
    welcome = [ChatEvent(EventKind.WELCOME)]
    client = FakeClient([welcome, welcome], quit_after=2)
    runner = BotRunner(make_context(), client)  # type: ignore[arg-type]

    await runner.run()

    # First connect refused, then two sessions: one dropped, one quit.
    assert client.connects == 3
    assert client.sent == [("join", ["#moose"]), ("join", ["#moose"])]


@pytest.mark.asyncio
async def test_stop_sends_quit_once(make_context):
    client = FakeClient([[]], quit_after=0)
    runner = BotRunner(make_context(), client)  # type: ignore[arg-type]
    runner.stop()
    runner.stop()
    await runner._quit_task  # noqa: SLF001
    assert client.sent == [("quit", QUIT_MESSAGE)]
    assert runner.shutdown_initiated


@pytest.mark.asyncio
async def test_context_create_and_shutdown(config_factory, tmp_path):
    invite_file = tmp_path / "invites.json"
    invite_file.write_text(json.dumps(["#invited"]))
    config = config_factory(invite_file=str(invite_file), moose_delay="2s")

    ctx = await ApplicationContext.create(config)
    try:
        assert isinstance(ctx.session, aiohttp.ClientSession)
        assert ctx.session.timeout.total == pytest.approx(5.0)
        assert ctx.invites is not None and "#invited" in ctx.invites
        assert ctx.gate.window == pytest.approx(2.0)
        assert ctx.api.base_url == config.moose_url
    finally:
        session = ctx.session
        await ctx.shutdown()
    assert session.closed
    assert ctx.session is None


@pytest.mark.asyncio
async def test_context_without_invites(config_factory):
    ctx = await ApplicationContext.create(config_factory())
    try:
        assert ctx.invites is None
    finally:
        await ctx.shutdown()


@pytest.mark.asyncio
async def test_stop_between_connect_attempts_ends_run(make_context, monkeypatch):
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_INITIAL_BACKOFF", 0)
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_MAX_BACKOFF", 0)
    client = FakeClient([[]], quit_after=99)
    runner = BotRunner(make_context(), client)  # type: ignore[arg-type]

    async def refused_then_stopped() -> None:
        client.connects += 1
        runner.stop()
        raise ConnectionRefusedError("not yet")

    client.connect = refused_then_stopped  # type: ignore[method-assign]

    await asyncio.wait_for(runner.run(), timeout=2)

    # No second connection is opened once shutdown has started.
    assert client.connects == 1
    assert client.sessions == [[]]
    assert ("disconnect",) in client.sent


@pytest.mark.asyncio
async def test_stop_during_connect_closes_new_session(make_context):
    client = FakeClient([[]], quit_after=99)
    runner = BotRunner(make_context(), client)  # type: ignore[arg-type]

    async def connected_while_stopping() -> None:
        client.connects += 1
        runner.stop()

    client.connect = connected_while_stopping  # type: ignore[method-assign]

    await asyncio.wait_for(runner.run(), timeout=2)

    assert client.sessions == [[]], "listen() must not run after stop()"
    assert ("quit", QUIT_MESSAGE) in client.sent
    assert ("disconnect",) in client.sent


@pytest.mark.asyncio
async def test_stop_during_reconnect_against_silent_server(make_context, config_factory, monkeypatch):
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_INITIAL_BACKOFF", 0)
    monkeypatch.setattr("moosebot.bot.manager.RECONNECT_MAX_BACKOFF", 0)
    received: list[str] = []
    closed = asyncio.Event()

    async def silent_server(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        while line := await reader.readline():
            received.append(line.decode().rstrip("\r\n"))
        writer.close()
        closed.set()

    server = await asyncio.start_server(silent_server, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    client = IRCClient(config_factory(host=f"127.0.0.1:{port}"))
    runner = BotRunner(make_context(), client)
    real_connect = client.connect
    calls = 0

    async def refuse_first_then_stop() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise ConnectionRefusedError("not yet")
        await real_connect()
        runner.stop()

    client.connect = refuse_first_then_stop  # type: ignore[method-assign]

    try:
        await asyncio.wait_for(runner.run(), timeout=2)
        await asyncio.wait_for(closed.wait(), timeout=2)
    finally:
        server.close()
        await server.wait_closed()

    assert calls == 2
    assert client.quit_requested
    assert client.writer is None
    assert "NICK :MrMoose" in received
    assert f"QUIT :{QUIT_MESSAGE}" in received
