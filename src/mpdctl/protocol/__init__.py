"""MPD protocol - line framing, response parsing and ACK decoding."""

from .errors import (
    AlreadyConnected,
    ConnectionLost,
    ErrorCode,
    HandshakeError,
    MalformedError,
    MPDError,
    NotConnected,
    ServerError,
    decode_ack,
)
from .messages import (
    DEFAULT_PORT,
    Command,
    PlaybackState,
    format_arg,
    quote_arg,
    split_command,
)
from .parser import coerce_value, empty_composite, parse_lines, parse_pair, read_response

__all__ = [
    "DEFAULT_PORT",
    "Command",
    "PlaybackState",
    "format_arg",
    "quote_arg",
    "split_command",
    "coerce_value",
    "empty_composite",
    "parse_lines",
    "parse_pair",
    "read_response",
    "decode_ack",
    "ErrorCode",
    "MPDError",
    "NotConnected",
    "AlreadyConnected",
    "HandshakeError",
    "ConnectionLost",
    "MalformedError",
    "ServerError",
]
