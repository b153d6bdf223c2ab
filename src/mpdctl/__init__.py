"""mpdctl - client for the Music Player Daemon text protocol."""

from .client import Client
from .events import EventType
from .notifier import ChangeNotifier, NotifierState
from .protocol.errors import (
    AlreadyConnected,
    ConnectionLost,
    ErrorCode,
    HandshakeError,
    MalformedError,
    MPDError,
    NotConnected,
    ServerError,
)
from .protocol.messages import PlaybackState

__version__ = "0.1.0"

__all__ = [
    "Client",
    "EventType",
    "ChangeNotifier",
    "NotifierState",
    "PlaybackState",
    "ErrorCode",
    "MPDError",
    "NotConnected",
    "AlreadyConnected",
    "HandshakeError",
    "ConnectionLost",
    "MalformedError",
    "ServerError",
]
