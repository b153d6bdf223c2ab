"""Pytest configuration and fixtures for mpdctl tests."""

from __future__ import annotations

import os
import shutil
import socket
import tempfile
import threading
import time
from typing import Callable, Generator

import pytest

from mpdctl.client import Client
from mpdctl.config import Config, NotifierConfig
from mpdctl.protocol.messages import split_command

# Marker inside a scripted response: close the stream at this point.
HANGUP = object()

Responder = Callable[[list[str]], list]


class FakeDaemon:
    """Single-threaded stand-in for MPD.

    Serves one connection at a time on one thread, so requests are answered
    strictly in arrival order. Responses are scripted per command name as a
    list of lines (without the trailing OK) or a callable taking the
    argument tokens and returning such a list. A line starting with ACK
    replaces the OK terminator.
    """

    def __init__(self, unix_path: str | None = None, greeting: str = "OK MPD 0.23.5"):
        self.unix_path = unix_path
        self.greeting = greeting
        self.responses: dict[str, list | Responder] = {
            "ping": [],
            "status": ["volume: 50", "state: stop"],
            "currentsong": [],
        }
        self.received: list[str] = []
        self.connections = 0
        self._listener: socket.socket | None = None
        self._conn: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stopped = threading.Event()

    @property
    def host(self) -> str:
        if self.unix_path:
            return self.unix_path
        return self._listener.getsockname()[0]

    @property
    def port(self) -> int:
        if self.unix_path:
            return 0
        return self._listener.getsockname()[1]

    def commands(self) -> list[str]:
        return [split_command(line)[0] for line in self.received]

    def start(self) -> None:
        if self.unix_path:
            listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            listener.bind(self.unix_path)
        else:
            listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            listener.bind(("127.0.0.1", 0))
        listener.listen(8)
        listener.settimeout(0.05)
        self._listener = listener
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        self.hangup()
        if self._thread is not None:
            self._thread.join(timeout=5)
        if self._listener is not None:
            self._listener.close()

    def hangup(self) -> None:
        """Drop the current client connection."""
        conn = self._conn
        if conn is not None:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def _serve(self) -> None:
        while not self._stopped.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            conn.settimeout(None)
            self._conn = conn
            self.connections += 1
            try:
                self._handle(conn)
            finally:
                self._conn = None
                conn.close()

    def _handle(self, conn: socket.socket) -> None:
        reader = conn.makefile("rb")
        try:
            conn.sendall(f"{self.greeting}\n".encode())
            while True:
                try:
                    raw = reader.readline()
                except OSError:
                    return
                if not raw:
                    return
                line = raw.decode("utf-8").rstrip("\n")
                self.received.append(line)
                name, args = split_command(line)
                if name == "close":
                    return
                if not self._reply(conn, name, args):
                    return
        finally:
            reader.close()

    def _reply(self, conn: socket.socket, name: str, args: list[str]) -> bool:
        script = self.responses.get(name)
        if script is None:
            lines = [f'ACK [5@0] {{{name}}} unknown command "{name}"']
        elif callable(script):
            lines = list(script(args))
        else:
            lines = list(script)

        out = []
        for line in lines:
            if line is HANGUP:
                conn.sendall("".join(out).encode())
                return False
            out.append(f"{line}\n")
        if not (lines and lines[-1].startswith("ACK")):
            out.append("OK\n")
        try:
            conn.sendall("".join(out).encode())
        except OSError:
            return False
        return True


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll until predicate() is true or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def fast_config() -> Config:
    return Config(notifier=NotifierConfig(poll_interval=0.01, reconnect_delay=0.05))


def lines_reader(lines: list[str]) -> Callable[[], str | None]:
    """read_line stand-in over canned lines; None once exhausted."""
    it = iter(lines)
    return lambda: next(it, None)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config and MPD_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.delenv("MPD_HOST", raising=False)
    monkeypatch.delenv("MPD_PORT", raising=False)


@pytest.fixture
def fake_daemon() -> Generator[FakeDaemon, None, None]:
    daemon = FakeDaemon()
    daemon.start()
    yield daemon
    daemon.stop()


@pytest.fixture
def unix_daemon() -> Generator[FakeDaemon, None, None]:
    # Short directory: AF_UNIX paths are limited to ~100 bytes.
    sock_dir = tempfile.mkdtemp(prefix="mpd")
    daemon = FakeDaemon(unix_path=os.path.join(sock_dir, "socket"))
    daemon.start()
    yield daemon
    daemon.stop()
    shutil.rmtree(sock_dir, ignore_errors=True)


@pytest.fixture
def client(fake_daemon) -> Generator[Client, None, None]:
    client = Client(fake_daemon.host, fake_daemon.port, config=fast_config())
    yield client
    client.close()
