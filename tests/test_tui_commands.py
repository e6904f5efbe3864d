from __future__ import annotations

import base64
from pathlib import Path

import pytest

from musicbox.audio.playback import NullPlayback
from musicbox.audio.samples import HandleLoader
from musicbox.io.session_yaml import save_session_yaml
from musicbox.model.types import SessionState
from musicbox.sequencer.session import Session
from musicbox.sequencer.transport import TransportClock
from musicbox.tui.app import MusicBoxApp


@pytest.fixture(autouse=True)
def _events_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MUSICBOX_EVENTS_LOG", str(tmp_path / "events.jsonl"))


def _app() -> MusicBoxApp:
    session = Session.create(HandleLoader())
    # Command handling never touches the screen.
    return MusicBoxApp(None, session, TransportClock(session, NullPlayback()))  # type: ignore[arg-type]


def _command(app: MusicBoxApp, text: str) -> bool:
    assert app.handle_key(ord(":"))
    app.cmd_buffer = text
    return app.handle_text_input(10)


def test_load_and_save_commands(tmp_path: Path) -> None:
    app = _app()
    src = tmp_path / "song.yaml"
    save_session_yaml(SessionState(piano="qwe", beats="a", sync=True), src)

    assert _command(app, f"load {src}")
    assert app.session.state() == SessionState(piano="qwe", beats="a", sync=True)

    out = tmp_path / "copy.yaml"
    assert _command(app, f"save {out}")
    assert out.exists()
    assert app.mode == "normal"


def test_load_malformed_yaml_reports_on_status_line(tmp_path: Path) -> None:
    app = _app()
    app.session.update_piano("qwe")
    bad = tmp_path / "bad.yaml"
    bad.write_text("piano: [unclosed\n", encoding="utf-8")

    assert _command(app, f"load {bad}")
    assert app.status.startswith("Error: invalid session YAML")
    assert app.session.piano.text == "qwe"


def test_open_deeply_nested_token_keeps_running() -> None:
    app = _app()
    app.session.update_beats("abc")
    token = base64.urlsafe_b64encode(b"[" * 200000).decode("ascii")

    assert _command(app, f"open {token}")
    assert app.status.startswith("invalid session")
    assert app.session.beats.text == "abc"


def test_quit_command_stops_the_loop() -> None:
    assert _command(_app(), "quit") is False
