from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    DEFAULT_MOOSE_URL,
    IRC_DEFAULT_PORT,
    IRC_DEFAULT_TLS_PORT,
    MOOSE_COOLDOWN_SECONDS,
)

_DURATION_UNITS = {
    "s": 1.0,
    "secs": 1.0,
    "seconds": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "ns": 1e-9,
}


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Numbers and bare digit strings are milliseconds; otherwise ``<n><unit>``
    where unit is one of ``s``, ``secs``, ``seconds``, ``ms``, ``us``, ``ns``.

    Raises:
        ValueError: For empty strings, negative or malformed values.
    """
    if isinstance(value, bool):
        raise ValueError("duration must be a number or string")
    if isinstance(value, int | float):
        if value < 0:
            raise ValueError("duration must not be negative")
        return float(value) / 1000.0
    if not isinstance(value, str):
        raise ValueError("duration must be a number or string")
    text = value.strip()
    if not text:
        raise ValueError(
            "Empty duration is not allowed; please omit or set a value of zero."
        )
    split = next((i for i, ch in enumerate(text) if not ch.isdigit()), None)
    if split is None:
        return int(text) / 1000.0
    number, unit = text[:split], text[split:].strip()
    if not number:
        raise ValueError("You must enter a valid number.")
    if unit not in _DURATION_UNITS:
        raise ValueError(
            f"Invalid duration unit `{unit}`. should be `s`, `ms`, `us`, `ns`"
        )
    return int(number) * _DURATION_UNITS[unit]


class BotConfig(BaseModel):
    """Static configuration for one IRC network.

    Attributes:
        nick: Nickname the bot registers with.
        host: ``host[:port]`` of the IRC server.
        password: Optional server password (``PASS``).
        tls: Whether to wrap the connection in TLS.
        nickserv: Optional password sent with ``NICKSERV IDENTIFY``.
        channels: Statically configured channels, joined on connect.
        moose_url: Base URL of the moose service.
        moose_delay: Cooldown window in seconds between accepted lookups.
        send_delay: Minimum spacing in seconds between outbound lines.
        invite_file: Path of the persisted invite list; None disables invites.
        disable_search: Reject search commands with a gallery link instead.
        gateway_users: Nicks that relay other users' messages as ``<nick> text``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    nick: str = Field(min_length=1)
    host: str = Field(min_length=1)
    password: str | None = Field(default=None, alias="pass")
    tls: bool = False
    nickserv: str | None = None
    channels: list[str] = Field(default_factory=list)
    moose_url: str = Field(default=DEFAULT_MOOSE_URL, alias="moose-url")
    moose_delay: float = Field(default=MOOSE_COOLDOWN_SECONDS, alias="moose-delay")
    send_delay: float = Field(default=0.0, alias="send-delay")
    invite_file: str | None = Field(default=None, alias="invite-file")
    disable_search: bool = Field(default=False, alias="disable-search")
    gateway_users: list[str] = Field(default_factory=list, alias="gateway-users")

    @field_validator("nick", "host", mode="before")
    @classmethod
    def strip_required(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("password", "nickserv", "invite_file", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("channels", "gateway_users", mode="before")
    @classmethod
    def validate_names(cls, v: Any) -> list[str]:
        """Strip names, drop empties and de-duplicate keeping first-seen order."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("must be a list of strings")
        names = [c.strip() for c in v if isinstance(c, str) and c.strip()]
        return list(dict.fromkeys(names))

    @field_validator("moose_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().rstrip("/") or DEFAULT_MOOSE_URL
        return v

    @field_validator("moose_delay", "send_delay", mode="before")
    @classmethod
    def validate_duration(cls, v: Any) -> float:
        return parse_duration(v)

    @property
    def invites_enabled(self) -> bool:
        return bool(self.invite_file)

    def host_port(self) -> tuple[str, int]:
        """Split ``host`` into hostname and port, defaulting the port by TLS."""
        host, sep, port = self.host.rpartition(":")
        if sep and port.isdigit() and host:
            return host, int(port)
        return self.host, IRC_DEFAULT_TLS_PORT if self.tls else IRC_DEFAULT_PORT
