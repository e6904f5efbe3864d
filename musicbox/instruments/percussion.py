from __future__ import annotations

from musicbox.instruments.base import MapperNotLoaded, SampleLoader, load_all
from musicbox.model.types import SoundHandle
from musicbox.util.notes import PERCUSSION_ALPHABET, percussion_key


class PercussionMapper:
    id = "beats"

    def __init__(self, alphabet: str = PERCUSSION_ALPHABET) -> None:
        if len(set(alphabet)) != len(alphabet):
            raise ValueError(f"percussion alphabet has duplicate letters: {alphabet!r}")
        self.alphabet = alphabet
        self.beats: list[SoundHandle] = []

    @property
    def loaded(self) -> bool:
        return bool(self.beats)

    def keys(self) -> list[str]:
        return [percussion_key(ch) for ch in self.alphabet]

    def load(self, loader: SampleLoader) -> None:
        self.beats = load_all(loader, self.keys())

    def map(self, ch: str) -> SoundHandle | None:
        if not self.beats:
            raise MapperNotLoaded(self.id)
        letter = ch.lower()
        if len(letter) != 1:
            return None
        idx = self.alphabet.find(letter)
        return self.beats[idx] if idx >= 0 else None
