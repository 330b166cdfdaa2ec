"""IRC message parsing and formatting utilities."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..constants import IRC_MAX_LINE_LENGTH


@dataclass
class IRCMessage:
    raw: str
    prefix: str | None
    command: str | None
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        """Nickname (or server name) from a ``nick!user@host`` prefix."""
        return (self.prefix or "").split("!", 1)[0]


def parse_irc_message(raw_line: str) -> IRCMessage:
    tags: dict[str, str] = {}
    prefix: str | None = None
    command: str | None = None
    params: list[str] = []

    original = raw_line
    line = raw_line.rstrip("\r\n")

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])

    if line.startswith(":"):
        # Malformed lines may omit everything after the prefix.
        prefix, _, line = line[1:].partition(" ")

    trailing: str | None = None
    if line.startswith(":"):
        line, trailing = "", line[1:]
    elif " :" in line:
        line, trailing = line.split(" :", 1)

    parts = line.split()
    if parts:
        command = parts[0].upper()
        params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IRCMessage(
        raw=original, prefix=prefix, command=command, params=params, tags=tags
    )


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        k, _, v = tag.partition("=")
        tags[k] = v
    return tags


def format_line(command: str, *params: str) -> str:
    """Build an outbound line (without CRLF); the last param becomes trailing."""
    if not params:
        return command
    *middle, last = params
    for p in middle:
        if not p or " " in p or p.startswith(":"):
            raise ValueError(f"invalid middle parameter: {p!r}")
    return " ".join([command, *middle, f":{last}"])


def join_lines(channels: Iterable[str], command: str = "JOIN") -> list[str]:
    """Batch channels into as few ``JOIN a,b,c`` lines as fit the line limit."""
    lines: list[str] = []
    current = ""
    for channel in channels:
        if not channel:
            continue
        candidate = f"{current},{channel}" if current else f"{command} {channel}"
        if current and len(candidate.encode("utf-8")) > IRC_MAX_LINE_LENGTH:
            lines.append(current)
            candidate = f"{command} {channel}"
        current = candidate
    if current:
        lines.append(current)
    return lines
