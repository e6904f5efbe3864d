from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Velocity(str, Enum):
    FORTE = "ff"
    MEZZOFORTE = "mf"

    @staticmethod
    def for_char(ch: str) -> "Velocity":
        # Non-letters are never upper case, so they land in the mezzoforte tier.
        return Velocity.FORTE if ch.isupper() else Velocity.MEZZOFORTE


@dataclass(frozen=True)
class SoundHandle:
    """Opaque reference to a loadable sample.

    The key is stable across sessions ("ff/C4", "beat/q"). Decoded audio lives
    in the sample library; handles are safe to share between tracks.
    """

    key: str

    def __post_init__(self) -> None:
        if not str(self.key).strip():
            raise ValueError("sound handle key must be non-empty")

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class NoteKey:
    pitch: str
    octave: int

    def __post_init__(self) -> None:
        if len(self.pitch) != 1 or not self.pitch.isalpha():
            raise ValueError(f"pitch class must be a single letter: {self.pitch!r}")

    @property
    def name(self) -> str:
        return f"{self.pitch}{self.octave}"


@dataclass(frozen=True)
class RenderCell:
    char: str
    active: bool = False


@dataclass(frozen=True)
class RenderLine:
    index: int
    cells: tuple[RenderCell, ...] = ()

    @property
    def text(self) -> str:
        return "".join(c.char for c in self.cells)

    def active_index(self) -> int | None:
        for i, c in enumerate(self.cells):
            if c.active:
                return i
        return None


@dataclass
class SessionState:
    """The three fields that survive a session: both texts and the sync flag."""

    piano: str = ""
    beats: str = ""
    sync: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "piano": self.piano,
            "beats": self.beats,
            "sync": bool(self.sync),
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "SessionState":
        piano = d.get("piano", "")
        beats = d.get("beats", "")
        if piano is None:
            piano = ""
        if beats is None:
            beats = ""
        if not isinstance(piano, str) or not isinstance(beats, str):
            raise ValueError("piano and beats must be strings")
        sync = d.get("sync", False)
        if not isinstance(sync, bool):
            raise ValueError("sync must be a boolean")
        return SessionState(piano=piano, beats=beats, sync=sync)
