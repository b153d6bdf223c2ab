"""Change event kinds and the subscriber registry."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

_logger = logging.getLogger("mpdctl.events")


class EventType(str, Enum):
    """Events dispatched by the change notifier.

    Apart from CONNECTION and SONG each member is named after the status
    field whose change it reports.
    """

    CONNECTION = "connection"
    SONG = "song"

    VOLUME = "volume"
    REPEAT = "repeat"
    RANDOM = "random"
    SINGLE = "single"
    CONSUME = "consume"
    PARTITION = "partition"
    PLAYLIST = "playlist"
    PLAYLISTLENGTH = "playlistlength"
    STATE = "state"
    SONGID = "songid"
    NEXTSONG = "nextsong"
    NEXTSONGID = "nextsongid"
    TIME = "time"
    ELAPSED = "elapsed"
    DURATION = "duration"
    BITRATE = "bitrate"
    XFADE = "xfade"
    MIXRAMPDB = "mixrampdb"
    MIXRAMPDELAY = "mixrampdelay"
    AUDIO = "audio"
    UPDATING_DB = "updating_db"
    ERROR = "error"
    LASTLOADEDPLAYLIST = "lastloadedplaylist"

    @classmethod
    def lookup(cls, name: str) -> EventType | None:
        try:
            return cls(name)
        except ValueError:
            return None


Handler = Callable[..., Any]


class EventRegistry:
    """Ordered handler lists per event kind."""

    def __init__(self):
        self._handlers: dict[EventType, list[Handler]] = {}

    def on(self, event: EventType | str, handler: Handler) -> None:
        """Register ``handler`` for ``event``.

        Raises:
            ValueError: ``event`` is not a known event name.
        """
        kind = EventType(event)
        self._handlers.setdefault(kind, []).append(handler)

    def handlers(self, event: EventType | str) -> list[Handler]:
        return list(self._handlers.get(EventType(event), []))

    def emit(self, event: EventType, *args: Any) -> None:
        """Call every handler for ``event`` in registration order.

        A failing handler is logged and does not prevent the others from
        running.
        """
        _logger.debug(f"{event.value} {args!r}")
        for handler in self.handlers(event):
            try:
                handler(*args)
            except Exception:
                _logger.exception(f"Error in {event.value} handler {handler!r}")
