from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from musicbox.model.types import SessionState


class _BlockDumper(yaml.SafeDumper):
    pass


def _str_presenter(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    # Multi-line track text reads best as a literal block.
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_BlockDumper.add_representer(str, _str_presenter)


def load_session_yaml(path: str | Path) -> SessionState:
    p = Path(path)
    try:
        data: Any = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"invalid session YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("session YAML must be a mapping/object")
    return SessionState.from_dict(data)


def dump_session_yaml(state: SessionState) -> str:
    return yaml.dump(state.to_dict(), Dumper=_BlockDumper, sort_keys=False, allow_unicode=True)


def save_session_yaml(state: SessionState, path: str | Path) -> str:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(dump_session_yaml(state), encoding="utf-8")
    return str(out)
