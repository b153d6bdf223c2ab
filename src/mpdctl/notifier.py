"""Background status poller that turns snapshot diffs into events."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any

from .events import EventRegistry, EventType
from .protocol.errors import MPDError
from .protocol.parser import COMPOSITE_FIELDS, empty_composite

if TYPE_CHECKING:
    from .client import Client

_logger = logging.getLogger("mpdctl.notifier")

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_RECONNECT_DELAY = 2.0


class NotifierState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def normalize_snapshot(status: dict[str, Any]) -> dict[str, Any]:
    """Fill absent composite fields with placeholder tuples."""
    snapshot = dict(status)
    for key in COMPOSITE_FIELDS:
        if snapshot.get(key) is None:
            snapshot[key] = empty_composite(key)
    return snapshot


class ChangeNotifier:
    """Polls ``status`` and emits an event per changed field.

    The daemon's ``idle`` command could report changes as they happen; this
    notifier polls on a fixed interval instead.
    """

    def __init__(
        self,
        client: Client,
        registry: EventRegistry,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ):
        self.client = client
        self.registry = registry
        self.poll_interval = poll_interval
        self.reconnect_delay = reconnect_delay
        self.state = NotifierState.IDLE
        self._connected: bool | None = None
        self._previous: dict[str, Any] = {}
        self._cancel: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self.state == NotifierState.RUNNING

    def start(self) -> None:
        """Spawn the polling thread.

        Raises:
            RuntimeError: The notifier was already started.
        """
        if self.state != NotifierState.IDLE:
            raise RuntimeError(f"Cannot start notifier in state {self.state.value}")

        self._cancel = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._cancel,),
            name="mpdctl-notifier",
            daemon=True,
        )
        self.state = NotifierState.RUNNING
        self._thread.start()
        _logger.debug("Notifier started")

    def stop(self) -> None:
        """Request cancellation; the loop exits at its next cycle boundary."""
        if self._cancel is not None:
            self._cancel.set()
        self.state = NotifierState.STOPPED

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self, cancel: threading.Event) -> None:
        while not cancel.is_set():
            self.poll_once()
            cancel.wait(self.poll_interval)

            if not self._connected:
                cancel.wait(self.reconnect_delay)
                if not cancel.is_set():
                    self._reconnect()

        _logger.debug("Notifier stopped")

    def _reconnect(self) -> None:
        try:
            self.client.connect()
        except (MPDError, OSError) as e:
            _logger.warning(f"Reconnect to {self.client.endpoint} failed: {e}")

    def _fetch_status(self) -> dict[str, Any]:
        try:
            status = self.client.status()
        except (MPDError, OSError) as e:
            _logger.debug(f"Status poll failed: {e}")
            return {}
        return status if isinstance(status, dict) else {}

    def _fetch_current_song(self) -> dict[str, Any] | None:
        try:
            return self.client.current_song()
        except (MPDError, OSError) as e:
            _logger.debug(f"Current song fetch failed: {e}")
            return None

    def poll_once(self) -> None:
        """Run one poll cycle: connectivity, snapshot, diff, dispatch."""
        connected = self.client.is_connected()
        if connected != self._connected:
            self._connected = connected
            self.registry.emit(EventType.CONNECTION, connected)

        snapshot = normalize_snapshot(self._fetch_status())

        for key, value in snapshot.items():
            if key in self._previous and self._previous[key] == value:
                continue

            if key == EventType.SONG.value:
                self.registry.emit(EventType.SONG, self._fetch_current_song())
                continue

            event = EventType.lookup(key)
            if event is None:
                _logger.debug(f"No event for status field {key!r}")
            elif isinstance(value, tuple):
                self.registry.emit(event, *value)
            else:
                self.registry.emit(event, value)

        self._previous = snapshot
