"""Error taxonomy and ACK line decoding for the MPD protocol."""

from __future__ import annotations

import re
from enum import IntEnum


class ErrorCode(IntEnum):
    """ACK error codes reported by the daemon."""

    NOT_LIST = 1
    ARG = 2
    PASSWORD = 3
    PERMISSION = 4
    UNKNOWN = 5

    NO_EXIST = 50
    PLAYLIST_MAX = 51
    SYSTEM = 52
    PLAYLIST_LOAD = 53
    UPDATE_ALREADY = 54
    PLAYER_SYNC = 55
    EXIST = 56


class MPDError(Exception):
    """Base for every failure raised by the client."""


class NotConnected(MPDError):
    def __init__(self, message: str = "Not connected to the server"):
        super().__init__(message)


class AlreadyConnected(MPDError):
    def __init__(self, message: str = "Already connected"):
        super().__init__(message)


class HandshakeError(MPDError):
    def __init__(self, greeting: str | None):
        super().__init__(f"Unexpected greeting: {greeting!r}")
        self.greeting = greeting


class ConnectionLost(MPDError):
    def __init__(self, reason: str = "connection lost"):
        super().__init__(f"Connection lost ({reason})")
        self.reason = reason


class MalformedError(MPDError):
    """Response violated the line grammar."""


class ServerError(MPDError):
    """A decoded ACK line."""

    def __init__(self, code: int, command_index: int, command: str, message: str):
        super().__init__(f"{code}: {command}: {message}")
        self.code = code
        self.command_index = command_index
        self.command = command
        self.message = message

    @property
    def error_code(self) -> ErrorCode | None:
        """The known `ErrorCode` for `code`, or None."""
        try:
            return ErrorCode(self.code)
        except ValueError:
            return None


_ACK_RE = re.compile(
    r"^ACK \[(?P<code>\d+)@(?P<index>\d+)\] \{(?P<command>[^}]*)\} (?P<message>.*)$"
)


def decode_ack(line: str) -> ServerError:
    """Turn an ``ACK [code@index] {command} message`` line into a ServerError.

    Raises:
        MalformedError: If the line does not follow the ACK pattern.
    """
    match = _ACK_RE.match(line.rstrip("\n"))
    if match is None:
        raise MalformedError(f"Malformed ACK line: {line!r}")

    return ServerError(
        code=int(match["code"]),
        command_index=int(match["index"]),
        command=match["command"],
        message=match["message"],
    )
