from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from musicbox.model.types import SessionState


class MalformedStateError(ValueError):
    pass


def encode_state(state: SessionState) -> str:
    """Compact JSON, then URL-safe base64, so the token fits in a URL fragment."""
    payload = json.dumps(state.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_state(token: str) -> SessionState:
    s = str(token).strip().lstrip("#")
    if not s:
        raise MalformedStateError("empty session token")
    try:
        raw = base64.b64decode(s.encode("ascii"), altchars=b"-_", validate=True)
        data: Any = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError, RecursionError) as e:
        raise MalformedStateError(f"invalid session token: {e}") from e
    if not isinstance(data, dict):
        raise MalformedStateError("session token must decode to an object")
    try:
        return SessionState.from_dict(data)
    except ValueError as e:
        raise MalformedStateError(str(e)) from e
