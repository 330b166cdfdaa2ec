"""Moose command line parsing.

A single left-to-right pass over space separated tokens. The first token
selects the command; for lookup commands the next argument-determining token
ends the scan, so flag precedence is strictly first-match (``-r`` always
means random, whatever follows it).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

DEFAULT_TARGET = "random"


class CommandKind(Enum):
    RESOLVE = auto()
    IMAGE = auto()
    SEARCH = auto()
    BOTS_INFO = auto()
    HELP = auto()
    INVALID = auto()


class _State(Enum):
    FIND_COMMAND = auto()
    FIND_ARGS = auto()
    FIND_MOOSE = auto()


@dataclass(frozen=True, slots=True)
class Command:
    kind: CommandKind
    target: str = DEFAULT_TARGET

    @property
    def is_lookup(self) -> bool:
        return self.kind in (CommandKind.RESOLVE, CommandKind.IMAGE)


COMMAND_ALIASES: dict[str, CommandKind] = {
    ".moose": CommandKind.RESOLVE,
    "!moose": CommandKind.RESOLVE,
    "moose": CommandKind.RESOLVE,
    ".mooseme": CommandKind.RESOLVE,
    "!mooseme": CommandKind.RESOLVE,
    "mooseme": CommandKind.RESOLVE,
    ".mooseimg": CommandKind.IMAGE,
    "!mooseimg": CommandKind.IMAGE,
    "mooseimg": CommandKind.IMAGE,
    ".moosesearch": CommandKind.SEARCH,
    "!moosesearch": CommandKind.SEARCH,
    "moosesearch": CommandKind.SEARCH,
    ".bots": CommandKind.BOTS_INFO,
    "!bots": CommandKind.BOTS_INFO,
    ".help": CommandKind.BOTS_INFO,
    "!help": CommandKind.BOTS_INFO,
}

# Flags that fix the target and end the scan.
_TARGET_FLAGS = {
    "-r": "random",
    "--random": "random",
    "-l": "latest",
    "--latest": "latest",
    "-o": "oldest",
    "--oldest": "oldest",
}

# Flags that switch the command kind and take the remainder as the moose name.
_KIND_FLAGS = {
    "-s": CommandKind.SEARCH,
    "--search": CommandKind.SEARCH,
    "-i": CommandKind.IMAGE,
    "--image": CommandKind.IMAGE,
}


def parse_command(line: str) -> Command:
    """Parse one chat line into a Command. Never raises.

    Unrecognized input yields ``CommandKind.INVALID``.
    """
    tokens = line.split(" ")
    kind = CommandKind.INVALID
    target = DEFAULT_TARGET
    state = _State.FIND_COMMAND

    for pos, token in enumerate(tokens):
        if state is _State.FIND_COMMAND:
            kind = COMMAND_ALIASES.get(token, CommandKind.INVALID)
            if kind in (CommandKind.INVALID, CommandKind.BOTS_INFO):
                break
            state = _State.FIND_ARGS
        elif state is _State.FIND_ARGS:
            # Any argument token, even an empty one, means "not the default".
            target = ""
            if token == "":
                continue
            if token == "--":
                state = _State.FIND_MOOSE
            elif token in ("-h", "--help"):
                kind = CommandKind.HELP
                break
            elif token in _KIND_FLAGS:
                kind = _KIND_FLAGS[token]
                state = _State.FIND_MOOSE
            elif token in _TARGET_FLAGS:
                target = _TARGET_FLAGS[token]
                break
            else:
                target = " ".join(tokens[pos:])
                break
        else:
            if token == "":
                continue
            target = " ".join(tokens[pos:])
            break

    return Command(kind=kind, target=target.strip())
