"""Response reading, field coercion and record segmentation."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .errors import ConnectionLost, MalformedError, decode_ack
from .messages import ACK_PREFIX, OK_LINE, PlaybackState

_logger = logging.getLogger("mpdctl.parser")

INT_FIELDS = frozenset(
    {
        "volume",
        "playlistlength",
        "song",
        "songid",
        "nextsong",
        "nextsongid",
        "xfade",
        "bitrate",
        "updating_db",
        "Pos",
        "Id",
        "Prio",
        "Time",
        "artists",
        "albums",
        "songs",
        "uptime",
        "playtime",
        "db_playtime",
        "db_update",
        "outputid",
        "changes",
        "cpos",
    }
)

# Int only in the named command; elsewhere the same key holds a name.
COMMAND_INT_FIELDS = {"status": frozenset({"playlist"})}

FLOAT_FIELDS = frozenset({"elapsed", "duration", "mixrampdb", "mixrampdelay"})

BOOL_FIELDS = frozenset({"repeat", "random", "outputenabled"})

# 0/1 toggles that may also report "oneshot".
ONESHOT_FIELDS = frozenset({"single", "consume"})

# Field -> tuple size. Parts are ints when numeric.
COMPOSITE_FIELDS = {"time": 2, "audio": 3}

SCALAR_LIST_COMMANDS = frozenset(
    {
        "commands",
        "notcommands",
        "tagtypes",
        "urlhandlers",
        "list",
        "listplaylist",
        "idle",
        "channels",
    }
)

_SONG_KEYS = frozenset({"file"})
_DB_KEYS = frozenset({"file", "directory", "playlist"})

# Command -> keys whose appearance starts a new record.
ENTITY_KEYS: dict[str, frozenset[str]] = {
    "playlistinfo": _SONG_KEYS,
    "playlistid": _SONG_KEYS,
    "plchanges": _SONG_KEYS,
    "find": _SONG_KEYS,
    "search": _SONG_KEYS,
    "playlistfind": _SONG_KEYS,
    "playlistsearch": _SONG_KEYS,
    "listplaylistinfo": _SONG_KEYS,
    "lsinfo": _DB_KEYS,
    "listall": _DB_KEYS,
    "listallinfo": _DB_KEYS,
    "listfiles": frozenset({"file", "directory"}),
    "listplaylists": frozenset({"playlist"}),
    "outputs": frozenset({"outputid"}),
    "decoders": frozenset({"plugin"}),
    "listmounts": frozenset({"mount"}),
    "listneighbors": frozenset({"neighbor"}),
    "plchangesposid": frozenset({"cpos"}),
    "listpartitions": frozenset({"partition"}),
    "readmessages": frozenset({"channel"}),
}


def empty_composite(key: str) -> tuple[None, ...]:
    """Placeholder tuple for an absent composite field."""
    return (None,) * COMPOSITE_FIELDS[key]


def _composite_part(part: str) -> int | str:
    return int(part) if part.isdigit() else part


def coerce_value(key: str, value: str, command: str | None = None) -> Any:
    """Convert a raw value according to the rules for its field name.

    Raises:
        MalformedError: If the value does not fit its field's type.
    """
    try:
        if key in INT_FIELDS or key in COMMAND_INT_FIELDS.get(command, ()):
            return int(value)
        if key in FLOAT_FIELDS:
            return float(value)
        if key in BOOL_FIELDS:
            if value not in ("0", "1"):
                raise ValueError(value)
            return value == "1"
        if key in ONESHOT_FIELDS:
            return value == "1" if value in ("0", "1") else value
        if key == "state":
            return PlaybackState(value)
    except ValueError as exc:
        raise MalformedError(f"Bad value for {key!r}: {value!r}") from exc

    if key in COMPOSITE_FIELDS:
        size = COMPOSITE_FIELDS[key]
        parts = value.split(":")
        if len(parts) > size:
            raise MalformedError(f"Bad value for {key!r}: {value!r}")
        padded = [_composite_part(p) for p in parts] + [None] * (size - len(parts))
        return tuple(padded)

    return value


def parse_pair(line: str) -> tuple[str, str]:
    """Split a ``key: value`` line."""
    key, sep, value = line.partition(": ")
    if not sep or not key:
        raise MalformedError(f"Malformed response line: {line!r}")
    return key, value


def _add_value(record: dict[str, Any], key: str, value: Any) -> None:
    # Multi-valued tags (several Artist lines for one song) collect into a list.
    if key not in record:
        record[key] = value
    elif isinstance(record[key], list):
        record[key].append(value)
    else:
        record[key] = [record[key], value]


def _build_records(
    pairs: list[tuple[str, Any]], boundary: frozenset[str]
) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    for key, value in pairs:
        if current is None or key in boundary:
            current = {}
            records.append(current)
        _add_value(current, key, value)

    return records


def parse_lines(lines: list[str], command: str | None = None) -> Any:
    """Turn accumulated response lines into a typed result.

    Returns None for zero lines, a list of values for scalar-list commands,
    a list of records for entity-list commands and a single record
    otherwise. A key repeated within one record maps to a list of values.
    """
    if not lines:
        return None

    pairs = [parse_pair(line) for line in lines]
    pairs = [(key, coerce_value(key, value, command)) for key, value in pairs]

    if command in SCALAR_LIST_COMMANDS:
        return [value for _, value in pairs]

    if command in ENTITY_KEYS:
        return _build_records(pairs, ENTITY_KEYS[command])

    # Undeclared command: a new entity starts only where the first key repeats.
    first_key = pairs[0][0]
    records = _build_records(pairs, frozenset({first_key}))
    if len(records) == 1:
        return records[0]

    _logger.debug(f"Segmenting {command!r} response on {first_key!r}")
    return records


def read_response(read_line: Callable[[], str | None], command: str | None = None) -> Any:
    """Read lines until the OK/ACK terminator and return the parsed result.

    Args:
        read_line: Returns the next line without its newline, None at end of
            stream.
        command: Name of the command that was sent; selects the result shape.

    Raises:
        ServerError: The daemon answered with an ACK line.
        MalformedError: A line broke the response grammar.
        ConnectionLost: The stream ended before a terminator.
    """
    lines: list[str] = []

    while True:
        line = read_line()
        if line is None:
            raise ConnectionLost("end of stream before response terminator")
        if line == OK_LINE:
            return parse_lines(lines, command)
        if line.startswith(ACK_PREFIX):
            raise decode_ack(line)
        lines.append(line)
