from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any

from musicbox.util.config import default_config_dir


def events_log_path() -> Path:
    env = os.environ.get("MUSICBOX_EVENTS_LOG")
    if env:
        return Path(env).expanduser()
    return default_config_dir() / "events.jsonl"


def log_event(event: str, **fields: Any) -> None:
    """Append a single JSON line event. Best-effort; failures are ignored by caller."""
    p = events_log_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {"ts": time.time(), "event": event, **fields}
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(payload, sort_keys=True) + "\n")


def try_log_event(event: str, **fields: Any) -> bool:
    try:
        log_event(event, **fields)
    except OSError:
        return False
    return True
