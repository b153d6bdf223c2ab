"""Command framing and protocol value types for the MPD text protocol."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


DEFAULT_PORT = 6600

OK_LINE = "OK"
ACK_PREFIX = "ACK"
CLOSE_COMMAND = "close"
PING_COMMAND = "ping"

# Arguments containing any of these must be quoted.
_QUOTE_TRIGGERS = frozenset(" \t\r\n\"'\\")


class PlaybackState(str, Enum):
    """Player state reported in ``state:``."""

    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"


def format_arg(value: Any) -> str:
    """Render one argument value as its protocol token (unquoted)."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, range):
        if value.step != 1:
            raise ValueError(f"Range step must be 1: {value!r}")
        return f"{value.start}:{value.stop}"
    if isinstance(value, tuple):
        if len(value) != 2:
            raise ValueError(f"Range tuple must be (start, end): {value!r}")
        start, end = value
        return f"{start}:" if end is None else f"{start}:{end}"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def quote_arg(token: str) -> str:
    """Quote a token when the daemon's tokenizer would otherwise split it."""
    if token and not _QUOTE_TRIGGERS.intersection(token):
        return token
    escaped = token.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class Command:
    """One protocol request: a command name and its positional arguments."""

    name: str
    args: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.name or _QUOTE_TRIGGERS.intersection(self.name):
            raise ValueError(f"Invalid command name: {self.name!r}")
        # None arguments are optional positions left out.
        object.__setattr__(
            self, "args", tuple(a for a in self.args if a is not None)
        )
        # One request is exactly one line on the wire.
        for token in self.tokens:
            if "\n" in token or "\r" in token:
                raise ValueError(f"Line break in argument: {token!r}")

    @property
    def tokens(self) -> list[str]:
        return [format_arg(a) for a in self.args]

    def serialize(self) -> str:
        """Wire form without the trailing newline."""
        return " ".join([self.name, *(quote_arg(t) for t in self.tokens)])


def split_command(line: str) -> tuple[str, list[str]]:
    """Parse a request line back into its name and argument tokens."""
    parts = shlex.split(line.rstrip("\n"), posix=True)
    if not parts:
        raise ValueError("Empty command line")
    return parts[0], parts[1:]
