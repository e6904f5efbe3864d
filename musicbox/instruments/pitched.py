from __future__ import annotations

from musicbox.instruments.base import MapperNotLoaded, SampleLoader, load_all
from musicbox.model.types import NoteKey, SoundHandle, Velocity
from musicbox.util.notes import KEYBOARD_ROWS, PITCH_ALPHABET, keyboard_index, note_keys, pitched_key


class PitchedMapper:
    """Piano over three octaves, typed on three keyboard rows.

    Upper case plays the forte sample, everything else mezzoforte.
    """

    id = "piano"

    def __init__(self, pitch_alphabet: str = PITCH_ALPHABET, rows: tuple[str, ...] = KEYBOARD_ROWS) -> None:
        self.notes: list[NoteKey] = note_keys(pitch_alphabet)
        if len(rows) * 7 != len(self.notes) or any(len(r) != 7 for r in rows):
            raise ValueError("keyboard layout must be three rows of 7 keys")
        self.rows = rows
        self.tiers: dict[Velocity, list[SoundHandle]] = {}

    @property
    def loaded(self) -> bool:
        return bool(self.tiers)

    def keys(self) -> list[str]:
        return [pitched_key(v, n) for v in Velocity for n in self.notes]

    def load(self, loader: SampleLoader) -> None:
        tiers = {v: load_all(loader, [pitched_key(v, n) for n in self.notes]) for v in Velocity}
        self.tiers = tiers

    def map(self, ch: str) -> SoundHandle | None:
        if not self.tiers:
            raise MapperNotLoaded(self.id)
        idx = keyboard_index(ch, self.rows)
        if idx is None:
            return None
        return self.tiers[Velocity.for_char(ch)][idx]
