"""mpdctl CLI - Click commands and output formatters."""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any

import click

from .client import Client
from .config import Config, get_log_file, load_config
from .events import EventType
from .protocol.errors import MPDError, ServerError
from .protocol.messages import PlaybackState

_logger = logging.getLogger("mpdctl.cli")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(config: Config, verbose: int = 0) -> None:
    """Log to stderr, and to the configured file if any."""
    if verbose:
        level = logging.DEBUG if verbose > 1 else logging.INFO
    else:
        level = getattr(logging, config.logging.log_level.upper(), logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    root_logger = logging.getLogger("mpdctl")
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = get_log_file(config)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


# ---------------------------------------------------------------------------
# Output formatters
# ---------------------------------------------------------------------------


def fmt_time(seconds: float | None) -> str:
    if seconds is None or seconds < 0:
        return "0:00"
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}" if h else f"{m}:{s:02d}"


def _fmt_tag(value) -> str:
    return ", ".join(value) if isinstance(value, list) else value


def fmt_track(song: dict | None, duration: bool = True) -> str:
    if not song:
        return "(no song)"
    parts = []
    if song.get("Artist"):
        parts.append(_fmt_tag(song["Artist"]))
    if song.get("Title"):
        parts.append(_fmt_tag(song["Title"]))
    elif song.get("file"):
        parts.append(song["file"].split("/")[-1])
    text = " - ".join(parts) if parts else song.get("file", "(unknown)")
    length = song.get("duration", song.get("Time"))
    if duration and length:
        text += f" [{fmt_time(length)}]"
    return text


def fmt_status(data: dict, song: dict | None = None) -> str:
    lines = []
    state = data.get("state", PlaybackState.STOP)
    icon = {
        PlaybackState.PLAY: "▶",
        PlaybackState.PAUSE: "⏸",
        PlaybackState.STOP: "⏹",
    }.get(state, "?")
    lines.append(f"{icon} {fmt_track(song, duration=False)}")

    elapsed, total = data.get("time") or (None, None)
    if total:
        filled = int(40 * elapsed / total)
        bar = "▓" * filled + "░" * (40 - filled)
        lines.append(f"  {bar} {fmt_time(elapsed)} / {fmt_time(total)}")

    vol = data.get("volume", -1)
    flags = [
        name
        for name in ("repeat", "random", "single", "consume")
        if data.get(name) is True
    ]
    vol_text = "n/a" if vol < 0 else f"{vol}%"
    lines.append(f"  Volume: {vol_text}  {' '.join(flags)}".rstrip())

    qlen = data.get("playlistlength", 0)
    if qlen and data.get("song") is not None:
        lines.append(f"  Playlist: {data['song'] + 1}/{qlen}")
    if data.get("error"):
        lines.append(f"  Error: {data['error']}")
    return "\n".join(lines)


def fmt_event(event: EventType, args: tuple) -> str:
    if event == EventType.SONG:
        return f"[song] {fmt_track(args[0] if args else None)}"
    if event == EventType.TIME:
        elapsed, total = args
        return f"[time] {fmt_time(elapsed)} / {fmt_time(total)}"
    if event == EventType.CONNECTION:
        return "[connection] up" if args[0] else "[connection] down"
    values = " ".join(
        str(a.value) if isinstance(a, PlaybackState) else str(a) for a in args
    )
    return f"[{event.value}] {values}"


def fmt_result(result: Any) -> str:
    if result is None:
        return "OK"
    if isinstance(result, dict):
        return "\n".join(
            f"{k}: {_fmt_value(item)}"
            for k, v in result.items()
            for item in (v if isinstance(v, list) else [v])
        )
    if isinstance(result, list):
        if all(isinstance(r, dict) for r in result):
            return "\n\n".join(fmt_result(r) for r in result)
        return "\n".join(_fmt_value(r) for r in result)
    return str(result)


def _fmt_value(value: Any) -> str:
    if isinstance(value, PlaybackState):
        return value.value
    if isinstance(value, tuple):
        return ":".join("" if v is None else str(v) for v in value)
    return str(value)


def print_result(result: Any, json_output: bool = False, formatter=None) -> None:
    if json_output:
        print(json.dumps(result, indent=2))
    elif formatter:
        print(formatter(result or {}))
    else:
        print(fmt_result(result))


def fail(error: MPDError | OSError) -> None:
    if isinstance(error, ServerError):
        print(f"Error [{error.code}] {error.command}: {error.message}", file=sys.stderr)
    else:
        print(f"Error: {error}", file=sys.stderr)
    sys.exit(1)


# ---------------------------------------------------------------------------
# Click CLI
# ---------------------------------------------------------------------------


def get_client(ctx) -> Client:
    """Connected client for this invocation, closed when the CLI exits."""
    if ctx.obj.get("client") is None:
        client = Client(ctx.obj["host"], ctx.obj["port"], config=ctx.obj["config"])
        try:
            client.connect()
        except (MPDError, OSError) as e:
            fail(e)
        ctx.obj["client"] = client
        ctx.call_on_close(client.close)
    return ctx.obj["client"]


@click.group(invoke_without_command=True)
@click.option("--host", "-h", default=None, help="Host name or socket path")
@click.option("--port", "-p", type=int, default=None, help="TCP port")
@click.option("--json", "json_output", is_flag=True, help="Output JSON")
@click.option("-v", "--verbose", count=True, help="More logging (-vv for debug)")
@click.pass_context
def cli(ctx, host, port, json_output, verbose):
    """mpdctl - Music Player Daemon control client."""
    ctx.ensure_object(dict)
    config = load_config()
    setup_logging(config, verbose)
    ctx.obj.update(host=host, port=port, json=json_output, config=config)
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@cli.command()
@click.argument("command")
@click.argument("args", nargs=-1)
@click.pass_context
def send(ctx, command, args):
    """Send a raw protocol command."""
    client = get_client(ctx)
    try:
        result = client.execute(command, *args)
    except (MPDError, OSError) as e:
        fail(e)
    print_result(result, ctx.obj["json"])


@cli.command()
@click.pass_context
def status(ctx):
    """Show playback status."""
    client = get_client(ctx)
    try:
        data = client.status() or {}
        song = client.current_song()
    except (MPDError, OSError) as e:
        fail(e)
    if ctx.obj["json"]:
        print_result({"status": data, "song": song}, json_output=True)
    else:
        print(fmt_status(data, song))


@cli.command()
@click.pass_context
def current(ctx):
    """Show the current song."""
    client = get_client(ctx)
    try:
        song = client.current_song()
    except (MPDError, OSError) as e:
        fail(e)
    print_result(song, ctx.obj["json"], fmt_track if song else None)


@cli.command()
@click.pass_context
def ping(ctx):
    """Ping the daemon."""
    client = get_client(ctx)
    try:
        client.ping()
    except (MPDError, OSError) as e:
        fail(e)
    print("OK")


@cli.command()
@click.pass_context
def version(ctx):
    """Show the server's protocol version."""
    print(get_client(ctx).version)


@cli.command()
@click.pass_context
def watch(ctx):
    """Print change events until interrupted."""
    json_output = ctx.obj["json"]

    def printer(event: EventType):
        def handle(*args):
            if json_output:
                print(json.dumps({"event": event.value, "args": list(args)}))
            else:
                print(fmt_event(event, args))
            sys.stdout.flush()

        return handle

    client = Client(ctx.obj["host"], ctx.obj["port"], config=ctx.obj["config"])
    for event in EventType:
        client.on(event, printer(event))
    ctx.obj["client"] = client
    ctx.call_on_close(client.close)

    try:
        client.connect(callbacks=True)
    except (MPDError, OSError) as e:
        fail(e)

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    cli()


if __name__ == "__main__":
    main()
