from __future__ import annotations

from typing import Protocol

from musicbox.model.types import SoundHandle


class SampleLoader(Protocol):
    def load(self, key: str) -> SoundHandle:
        ...


class CharacterMapper(Protocol):
    """One character in, zero or one sound out.

    Implementations are loaded once and are pure afterwards: the same
    character always maps to the same handle.
    """

    id: str

    def keys(self) -> list[str]:
        ...

    def load(self, loader: SampleLoader) -> None:
        ...

    def map(self, ch: str) -> SoundHandle | None:
        ...


def load_all(loader: SampleLoader, keys: list[str]) -> list[SoundHandle]:
    # Any LoadError aborts the whole list; callers never see a partial tier.
    return [loader.load(k) for k in keys]


class MapperNotLoaded(RuntimeError):
    def __init__(self, mapper_id: str) -> None:
        super().__init__(f"{mapper_id} mapper used before its samples were loaded")
        self.mapper_id = mapper_id
