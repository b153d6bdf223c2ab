"""Client facade for talking to an MPD server."""

from __future__ import annotations

import logging
from typing import Any

from .channel import CommandChannel
from .config import Config, load_config
from .connection import Connection, Endpoint
from .events import EventRegistry, EventType, Handler
from .notifier import ChangeNotifier

_logger = logging.getLogger("mpdctl.client")


class Client:
    """Connection to one daemon, with optional change callbacks.

    Usage::

        client = Client("localhost", 6600)
        client.on("volume", lambda volume: print(f"Volume was set to {volume}"))
        client.connect(callbacks=True)
        client.execute("setvol", 40)
        client.disconnect()
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        config: Config | None = None,
    ):
        self.config = config or load_config()
        self.endpoint = Endpoint(
            host=host or self.config.connection.host,
            port=port or self.config.connection.port,
        )
        self.events = EventRegistry()
        self._connection = Connection(self.endpoint)
        self._channel = CommandChannel(self._connection)
        self._notifier: ChangeNotifier | None = None

    @property
    def version(self) -> str | None:
        """Protocol version announced by the server, None when disconnected."""
        return self._connection.version

    def on(self, event: EventType | str, handler: Handler) -> None:
        """Register a callback for a change event.

        Handlers for composite fields receive one argument per part, e.g.
        ``time`` handlers get ``(elapsed, total)``.
        """
        self.events.on(event, handler)

    def connect(self, callbacks: bool = False) -> str:
        """Connect and return the server's protocol version.

        With ``callbacks`` a background notifier is started; it polls status,
        emits events and reconnects when the connection drops.
        """
        version = self._channel.submit(self._connection.connect)

        if callbacks and (self._notifier is None or not self._notifier.running):
            self._notifier = ChangeNotifier(
                self,
                self.events,
                poll_interval=self.config.notifier.poll_interval,
                reconnect_delay=self.config.notifier.reconnect_delay,
            )
            self._notifier.start()

        return version

    def disconnect(self) -> None:
        """Stop callbacks and close the connection. Safe to repeat."""
        notifier, self._notifier = self._notifier, None
        if notifier is not None:
            notifier.stop()
            notifier.join()

        self._channel.submit(self._connection.disconnect)

    def is_connected(self) -> bool:
        """True only if the server answers a ping."""
        return self._channel.submit(self._connection.is_connected)

    def execute(self, command: str, *args: Any) -> Any:
        """Send a command with positional arguments; see `CommandChannel.execute`."""
        return self._channel.execute(command, *args)

    def ping(self) -> None:
        self.execute("ping")

    def status(self) -> dict[str, Any] | None:
        return self.execute("status")

    def current_song(self) -> dict[str, Any] | None:
        return self.execute("currentsong")

    def close(self) -> None:
        """Disconnect and stop the channel worker."""
        self.disconnect()
        self._channel.shutdown()

    def __enter__(self) -> Client:
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
