"""Tests for mpdctl CLI (formatters and commands)."""

from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

from mpdctl.cli import cli, fmt_event, fmt_result, fmt_status, fmt_time, fmt_track
from mpdctl.events import EventType
from mpdctl.protocol.messages import PlaybackState


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("mpdctl")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def run(fake_daemon):
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(
            cli, ["--host", "127.0.0.1", "--port", str(fake_daemon.port), *args]
        )

    return invoke


class TestFormatters:
    def test_time(self):
        assert fmt_time(0) == "0:00"
        assert fmt_time(95) == "1:35"
        assert fmt_time(3661) == "1:01:01"
        assert fmt_time(None) == "0:00"
        assert fmt_time(-5) == "0:00"

    def test_track_with_metadata(self):
        song = {"file": "x/a.flac", "Artist": "Artist", "Title": "Song", "Time": 180}
        result = fmt_track(song)
        assert "Artist - Song" in result
        assert "3:00" in result

    def test_track_file_only(self):
        assert fmt_track({"file": "music/dir/track.mp3"}) == "track.mp3"

    def test_track_none(self):
        assert fmt_track(None) == "(no song)"

    def test_track_multiple_artists(self):
        song = {"file": "a.mp3", "Artist": ["X", "Y"], "Title": "Duet"}
        assert fmt_track(song) == "X, Y - Duet"

    def test_status_playing(self):
        result = fmt_status(
            {
                "state": PlaybackState.PLAY,
                "time": (30, 120),
                "volume": 80,
                "repeat": True,
                "random": False,
                "playlistlength": 5,
                "song": 1,
            },
            {"Title": "Tune"},
        )
        assert "▶ Tune" in result
        assert "0:30 / 2:00" in result
        assert "80%" in result
        assert "repeat" in result
        assert "random" not in result
        assert "Playlist: 2/5" in result

    def test_status_no_mixer(self):
        result = fmt_status({"state": PlaybackState.STOP, "volume": -1})
        assert "⏹" in result
        assert "n/a" in result

    def test_event_formats(self):
        assert fmt_event(EventType.TIME, (65, 300)) == "[time] 1:05 / 5:00"
        assert fmt_event(EventType.CONNECTION, (False,)) == "[connection] down"
        assert fmt_event(EventType.STATE, (PlaybackState.PAUSE,)) == "[state] pause"
        assert fmt_event(EventType.SONG, ({"Title": "X"},)) == "[song] X"

    def test_result_shapes(self):
        assert fmt_result(None) == "OK"
        assert fmt_result({"Artist": ["X", "Y"]}) == "Artist: X\nArtist: Y"
        assert fmt_result({"audio": (44100, 16, None)}) == "audio: 44100:16:"
        assert fmt_result(["a", "b"]) == "a\nb"
        assert fmt_result([{"file": "a"}, {"file": "b"}]) == "file: a\n\nfile: b"


class TestCommands:
    def test_ping(self, run):
        result = run("ping")
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_version(self, run):
        result = run("version")
        assert result.exit_code == 0
        assert result.output.strip() == "0.23.5"

    def test_status_default_command(self, run, fake_daemon):
        fake_daemon.responses["status"] = ["volume: 35", "state: pause", "time: 10:100"]
        fake_daemon.responses["currentsong"] = ["file: a.mp3", "Title: Hello"]

        result = run()

        assert result.exit_code == 0
        assert "⏸ Hello" in result.output
        assert "35%" in result.output

    def test_send_quotes_arguments(self, run, fake_daemon):
        fake_daemon.responses["find"] = ["file: a.mp3", "Title: A", "file: b.mp3"]

        result = run("send", "find", "artist", "Daft Punk")

        assert result.exit_code == 0
        assert "file: a.mp3" in result.output
        assert 'find artist "Daft Punk"' in fake_daemon.received

    def test_send_json(self, run, fake_daemon):
        result = run("--json", "send", "status")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"volume": 50, "state": "stop"}

    def test_server_error(self, run):
        result = run("send", "bogus")
        assert result.exit_code == 1
        assert "Error [5] bogus" in result.output

    def test_connection_refused(self, fake_daemon):
        port = fake_daemon.port
        fake_daemon.stop()

        result = CliRunner().invoke(cli, ["--host", "127.0.0.1", "--port", str(port), "ping"])

        assert result.exit_code == 1
        assert "Error" in result.output
