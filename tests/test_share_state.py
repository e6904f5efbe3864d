from __future__ import annotations

import base64
import json

import pytest

from musicbox.io.share import MalformedStateError, decode_state, encode_state
from musicbox.model.types import SessionState


@pytest.mark.parametrize(
    "state",
    [
        SessionState(),
        SessionState(piano="qwe rty\nASD", beats="a a a\n\nbbb", sync=True),
        SessionState(piano="héllo ♪", beats="", sync=False),
        SessionState(piano="\n\n\n", beats=" ", sync=True),
    ],
)
def test_round_trip(state: SessionState) -> None:
    token = encode_state(state)
    assert decode_state(token) == state
    assert encode_state(decode_state(token)) == token


def test_token_is_printable_and_url_safe() -> None:
    token = encode_state(SessionState(piano="?" * 50, beats=">" * 50, sync=True))
    assert token.isascii()
    assert "+" not in token and "/" not in token


def test_decode_accepts_url_fragment_prefix() -> None:
    state = SessionState(piano="q", beats="a", sync=True)
    assert decode_state("#" + encode_state(state)) == state


def test_decode_token_without_sync_field() -> None:
    raw = base64.b64encode(json.dumps({"piano": "qwe", "beats": "abc"}).encode("utf-8")).decode("ascii")
    assert decode_state(raw) == SessionState(piano="qwe", beats="abc", sync=False)


def _b64(obj: object) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode("utf-8")).decode("ascii")


@pytest.mark.parametrize(
    "token",
    [
        "",
        "#",
        "not base64 at all!",
        "abc",
        "////",
        _b64([1, 2, 3]),
        _b64({"piano": 5, "beats": ""}),
        _b64({"piano": "", "beats": "", "sync": "yes"}),
        base64.b64encode(b"\xff\xfe\x00").decode("ascii"),
        "ünïcode",
    ],
)
def test_garbage_raises_malformed(token: str) -> None:
    with pytest.raises(MalformedStateError):
        decode_state(token)


def test_deeply_nested_payload_raises_malformed() -> None:
    token = base64.urlsafe_b64encode(b"[" * 200000).decode("ascii")
    with pytest.raises(MalformedStateError):
        decode_state(token)
