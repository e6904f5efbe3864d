from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any


def default_config_dir() -> Path:
    return Path.home() / ".config" / "musicbox"


def default_config_path() -> Path:
    return default_config_dir() / "config.json"


def app_data_dir() -> Path:
    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA") or (Path.home() / "AppData" / "Local")
        return Path(base) / "musicbox"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "musicbox"
    base = os.environ.get("XDG_DATA_HOME") or (Path.home() / ".local" / "share")
    return Path(base) / "musicbox"


def default_samples_dir() -> Path:
    return app_data_dir() / "samples"


@dataclass
class AppConfig:
    samples_dir: str | None = None
    player: str = "ffplay"
    sample_rate: int = 44100

    def to_dict(self) -> dict[str, Any]:
        return {
            "samples_dir": self.samples_dir,
            "player": self.player,
            "sample_rate": self.sample_rate,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppConfig":
        return AppConfig(
            samples_dir=d.get("samples_dir") or None,
            player=str(d.get("player") or "ffplay"),
            sample_rate=int(d.get("sample_rate", 44100) or 44100),
        )

    def resolve_samples_dir(self) -> Path:
        """Sample root: MUSICBOX_SAMPLES_DIR, then config, then the app data dir."""
        env = os.environ.get("MUSICBOX_SAMPLES_DIR")
        if env:
            return Path(env).expanduser()
        if self.samples_dir:
            return Path(self.samples_dir).expanduser()
        return default_samples_dir()


def load_config(path: Path | None = None) -> AppConfig:
    p = path or default_config_path()
    if not p.exists():
        return AppConfig()
    data = json.loads(p.read_text(encoding="utf-8"))
    return AppConfig.from_dict(data)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    p = path or default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return p
