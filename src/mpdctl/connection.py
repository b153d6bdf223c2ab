"""Socket ownership, greeting handshake and line I/O."""

from __future__ import annotations

import logging
import os
import re
import socket
from dataclasses import dataclass
from typing import BinaryIO

from .protocol.errors import (
    AlreadyConnected,
    ConnectionLost,
    HandshakeError,
    MalformedError,
    MPDError,
)
from .protocol.messages import CLOSE_COMMAND, DEFAULT_PORT, PING_COMMAND
from .protocol.parser import read_response

_logger = logging.getLogger("mpdctl.connection")

_GREETING_RE = re.compile(r"^OK (?P<daemon>\S+) (?P<version>\S+)$")


@dataclass(frozen=True)
class Endpoint:
    """Where the daemon listens: a local socket path or host/port."""

    host: str = "localhost"
    port: int = DEFAULT_PORT

    @property
    def is_local(self) -> bool:
        return os.path.exists(self.host)

    def __str__(self) -> str:
        return self.host if self.is_local else f"{self.host}:{self.port}"


class Connection:
    """One stream to the daemon.

    Not thread-safe: a single owner (the command channel's worker) performs
    every call. Blocking reads have no timeout, so a hung peer blocks the
    owner indefinitely.
    """

    def __init__(self, endpoint: Endpoint):
        self.endpoint = endpoint
        self.version: str | None = None
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None

    @property
    def connected(self) -> bool:
        """True while a socket is held (not a liveness check)."""
        return self._sock is not None

    def _open_socket(self) -> socket.socket:
        if self.endpoint.is_local:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.connect(self.endpoint.host)
            except OSError:
                sock.close()
                raise
            return sock
        return socket.create_connection((self.endpoint.host, self.endpoint.port))

    def connect(self) -> str:
        """Open the stream, read the greeting and return the protocol version.

        Raises:
            AlreadyConnected: A live connection already exists.
            HandshakeError: The greeting did not look like ``OK MPD <version>``.
            OSError: The socket could not be opened.
        """
        if self.connected:
            if self.is_connected():
                raise AlreadyConnected()
            _logger.debug("Dropping stale connection before reconnecting")
            self._drop()

        sock = self._open_socket()
        self._sock = sock
        self._reader = sock.makefile("rb")

        try:
            greeting = self.read_line()
        except (ConnectionLost, MalformedError):
            greeting = None

        match = _GREETING_RE.match(greeting) if greeting is not None else None
        if match is None:
            self._drop()
            raise HandshakeError(greeting)

        self.version = match["version"]
        _logger.info(f"Connected to {match['daemon']} {self.version} at {self.endpoint}")
        return self.version

    def disconnect(self) -> None:
        """Politely close the stream; safe to call when not connected."""
        if self._sock is None:
            return

        try:
            self._sock.sendall(f"{CLOSE_COMMAND}\n".encode())
        except OSError as e:
            _logger.debug(f"Ignoring error while sending close: {e}")

        self._drop()
        _logger.info(f"Disconnected from {self.endpoint}")

    def is_connected(self) -> bool:
        """Round-trip a ping; any failure reads as disconnected."""
        if self._sock is None:
            return False

        try:
            self.write_line(PING_COMMAND)
            read_response(self.read_line, PING_COMMAND)
        except (MPDError, OSError):
            return False
        return True

    def write_line(self, line: str) -> None:
        if self._sock is None:
            raise ConnectionLost("not connected")

        try:
            self._sock.sendall(line.encode("utf-8") + b"\n")
        except OSError as e:
            self._drop()
            raise ConnectionLost(f"write failed: {e}") from e

    def read_line(self) -> str | None:
        """Next line without its newline, or None at end of stream."""
        if self._reader is None:
            raise ConnectionLost("not connected")

        try:
            raw = self._reader.readline()
        except OSError as e:
            self._drop()
            raise ConnectionLost(f"read failed: {e}") from e

        if not raw:
            self._drop()
            return None

        try:
            return raw.decode("utf-8").rstrip("\n")
        except UnicodeDecodeError as e:
            # The rest of the response is still unread; the stream is unusable.
            self._drop()
            raise MalformedError(f"Response line is not UTF-8: {raw!r}") from e

    def _drop(self) -> None:
        """Close the socket and clear connection state."""
        for closable in (self._reader, self._sock):
            if closable is not None:
                try:
                    closable.close()
                except OSError:
                    pass
        self._reader = None
        self._sock = None
        self.version = None
