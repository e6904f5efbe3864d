from __future__ import annotations

import json
from pathlib import Path

import pytest

from musicbox.util.config import AppConfig, default_samples_dir, load_config, save_config
from musicbox.util.state_log import events_log_path, log_event, try_log_event


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "nope.json")
    assert cfg == AppConfig()


def test_save_and_load_config(tmp_path: Path) -> None:
    p = tmp_path / "cfg" / "config.json"
    save_config(AppConfig(samples_dir="~/s", player="ffplay", sample_rate=48000), p)
    cfg = load_config(p)
    assert cfg.samples_dir == "~/s"
    assert cfg.sample_rate == 48000


def test_samples_dir_resolution(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MUSICBOX_SAMPLES_DIR", raising=False)
    assert AppConfig().resolve_samples_dir() == default_samples_dir()
    assert AppConfig(samples_dir=str(tmp_path)).resolve_samples_dir() == tmp_path

    monkeypatch.setenv("MUSICBOX_SAMPLES_DIR", str(tmp_path / "env"))
    assert AppConfig(samples_dir=str(tmp_path)).resolve_samples_dir() == tmp_path / "env"


def test_events_are_appended_as_json_lines(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    log = tmp_path / "logs" / "events.jsonl"
    monkeypatch.setenv("MUSICBOX_EVENTS_LOG", str(log))
    assert events_log_path() == log

    log_event("state_opened", piano_lines=2)
    assert try_log_event("state_rejected", error="too long")

    rows = [json.loads(x) for x in log.read_text(encoding="utf-8").splitlines()]
    assert [r["event"] for r in rows] == ["state_opened", "state_rejected"]
    assert rows[0]["piano_lines"] == 2
    assert "ts" in rows[1]
