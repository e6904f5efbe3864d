from __future__ import annotations

from musicbox.model.types import NoteKey, Velocity


PITCH_ALPHABET = "CDEFGAB"
OCTAVES = "345"

PERCUSSION_ALPHABET = "abcdefghijklmnopqrstuvwxyz"

# One row per octave, lowest first. Row r position p selects note index 7*r + p.
KEYBOARD_ROWS: tuple[str, ...] = (
    "qwertyu",
    "asdfghj",
    "zxcvbnm",
)


def cross_product(pitches: str, octaves: str = OCTAVES) -> list[NoteKey]:
    """Flatten pitches x octaves, octave-major.

    The order must line up with KEYBOARD_ROWS: all pitches of the lowest
    octave first, then the next octave.
    """

    return [NoteKey(p, int(o)) for o in octaves for p in pitches]


def note_keys(pitch_alphabet: str = PITCH_ALPHABET) -> list[NoteKey]:
    if len(pitch_alphabet) != 7 or len(set(pitch_alphabet)) != 7:
        raise ValueError(f"pitch alphabet must be 7 distinct letters: {pitch_alphabet!r}")
    return cross_product(pitch_alphabet, OCTAVES)


def keyboard_index(ch: str, rows: tuple[str, ...] = KEYBOARD_ROWS) -> int | None:
    letter = ch.lower()
    for r, row in enumerate(rows):
        p = row.find(letter)
        if len(letter) == 1 and p >= 0:
            return len(row) * r + p
    return None


def pitched_key(velocity: Velocity, note: NoteKey) -> str:
    return f"{velocity.value}/{note.name}"


def percussion_key(letter: str) -> str:
    return f"beat/{letter}"


def all_sample_keys(pitch_alphabet: str = PITCH_ALPHABET) -> list[str]:
    keys = [pitched_key(v, n) for v in Velocity for n in note_keys(pitch_alphabet)]
    keys += [percussion_key(ch) for ch in PERCUSSION_ALPHABET]
    return keys


