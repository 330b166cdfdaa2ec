from __future__ import annotations

from collections.abc import Iterable

import pytest

from moosebot.api.moose import SearchResult
from moosebot.application_context import ApplicationContext
from moosebot.config.model import BotConfig
from moosebot.errors.internal import MooseNotFoundError
from moosebot.invites.store import InviteStore
from moosebot.rate.gate import RateGate


class FakeSink:
    """Records every outbound action the router asks for."""

    def __init__(self, nick: str = "MrMoose") -> None:
        self.nick = nick
        self.actions: list[tuple] = []

    @property
    def current_nick(self) -> str:
        return self.nick

    async def join(self, channels: Iterable[str]) -> None:
        self.actions.append(("join", list(channels)))

    async def privmsg(self, target: str, text: str) -> None:
        self.actions.append(("privmsg", target, text))

    async def notice(self, target: str, text: str) -> None:
        self.actions.append(("notice", target, text))

    async def identify(self, password: str) -> None:
        self.actions.append(("identify", password))

    def messages(self) -> list[str]:
        return [a[2] for a in self.actions if a[0] == "privmsg"]


class FakeMooseAPI:
    """In-memory stand-in for MooseAPI with call counting."""

    base_url = "https://moose.test"

    def __init__(self) -> None:
        self.moose: dict[str, list[str]] = {
            "random": ["line one", "line two"],
            "latest": ["newest"],
            "bullwinkle": ["\x0304bull\x03", "winkle"],
        }
        self.search_results: list[SearchResult] = []
        self.fail_with: Exception | None = None
        self.resolve_calls: list[str] = []
        self.fetch_calls: list[str] = []
        self.search_calls: list[str] = []

    def image_url(self, name: str) -> str:
        return f"{self.base_url}/img/{name}"

    def gallery_url(self, query: str) -> str:
        return f"{self.base_url}/gallery/0?q={query}"

    async def resolve(self, name: str) -> str:
        self.resolve_calls.append(name)
        if self.fail_with:
            raise self.fail_with
        if name not in self.moose:
            raise MooseNotFoundError(name)
        return name

    async def fetch_irc_lines(self, name: str) -> list[str]:
        self.fetch_calls.append(name)
        return list(self.moose[name])

    async def search(self, query: str) -> list[SearchResult]:
        self.search_calls.append(query)
        if self.fail_with:
            raise self.fail_with
        return list(self.search_results)


def _make_config(**overrides) -> BotConfig:
    data = {"nick": "MrMoose", "host": "irc.example.net:6667", "channels": ["#moose"]}
    data.update(overrides)
    return BotConfig.model_validate(data)


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def api() -> FakeMooseAPI:
    return FakeMooseAPI()


@pytest.fixture
def invite_store(tmp_path) -> InviteStore:
    store = InviteStore(tmp_path / "invites.json")
    store.load()
    return store


@pytest.fixture
def make_context(api):
    def _make(invites: InviteStore | None = None, window: float = 10.0, **config_overrides):
        return ApplicationContext(
            config=_make_config(**config_overrides),
            api=api,  # type: ignore[arg-type]
            gate=RateGate(window),
            invites=invites,
        )

    return _make


@pytest.fixture
def config_factory():
    return _make_config
