from __future__ import annotations

import pytest

from musicbox.audio.samples import HandleLoader
from musicbox.instruments.base import MapperNotLoaded
from musicbox.instruments.percussion import PercussionMapper
from musicbox.instruments.pitched import PitchedMapper
from musicbox.model.types import NoteKey, SoundHandle, Velocity
from musicbox.util.notes import KEYBOARD_ROWS, note_keys


def _piano() -> PitchedMapper:
    m = PitchedMapper("CDEFGAB")
    m.load(HandleLoader())
    return m


def _beats() -> PercussionMapper:
    m = PercussionMapper()
    m.load(HandleLoader())
    return m


def test_note_key_order_is_octave_major() -> None:
    notes = note_keys("CDEFGAB")
    assert len(notes) == 21
    assert notes[0] == NoteKey("C", 3)
    assert notes[6] == NoteKey("B", 3)
    assert notes[7] == NoteKey("C", 4)
    assert notes[20] == NoteKey("B", 5)


def test_note_keys_rejects_bad_alphabet() -> None:
    with pytest.raises(ValueError):
        note_keys("CDEFGA")
    with pytest.raises(ValueError):
        note_keys("CCEFGAB")


def test_pitched_load_requests_both_tiers_in_order() -> None:
    loader = HandleLoader()
    PitchedMapper().load(loader)
    assert len(loader.keys) == 42
    assert loader.keys[0] == "ff/C3"
    assert loader.keys[20] == "ff/B5"
    assert loader.keys[21] == "mf/C3"
    assert loader.keys[41] == "mf/B5"


def test_pitched_rows_map_to_octaves() -> None:
    m = _piano()
    assert m.map("q") == SoundHandle("mf/C3")
    assert m.map("u") == SoundHandle("mf/B3")
    assert m.map("a") == SoundHandle("mf/C4")
    assert m.map("h") == SoundHandle("mf/A4")
    assert m.map("z") == SoundHandle("mf/C5")
    assert m.map("m") == SoundHandle("mf/B5")


def test_case_selects_velocity_tier_for_same_note() -> None:
    m = _piano()
    for row in KEYBOARD_ROWS:
        for ch in row:
            low = m.map(ch)
            high = m.map(ch.upper())
            assert low is not None and high is not None
            assert low != high
            assert low.key.startswith("mf/")
            assert high.key.startswith("ff/")
            assert low.key.split("/", 1)[1] == high.key.split("/", 1)[1]


def test_velocity_for_char() -> None:
    assert Velocity.for_char("Q") is Velocity.FORTE
    assert Velocity.for_char("q") is Velocity.MEZZOFORTE
    assert Velocity.for_char("7") is Velocity.MEZZOFORTE


@pytest.mark.parametrize("ch", [" ", ".", "1", "i", "o", "p", "k", "l", "P", "\t", "é", ""])
def test_pitched_unmapped_chars_are_rests(ch: str) -> None:
    assert _piano().map(ch) is None


def test_percussion_maps_letters_case_insensitively() -> None:
    m = _beats()
    assert m.map("a") == SoundHandle("beat/a")
    assert m.map("Q") == SoundHandle("beat/q")
    assert m.map("z") == SoundHandle("beat/z")


@pytest.mark.parametrize("ch", [" ", "-", "0", "!", "ß", ""])
def test_percussion_unmapped_chars_are_rests(ch: str) -> None:
    assert _beats().map(ch) is None


def test_map_is_deterministic() -> None:
    m = _piano()
    assert [m.map(c) for c in "qAz x"] == [m.map(c) for c in "qAz x"]


def test_mapper_used_before_load_raises() -> None:
    with pytest.raises(MapperNotLoaded):
        PitchedMapper().map("q")
    with pytest.raises(MapperNotLoaded):
        PercussionMapper().map("a")


def test_failed_load_leaves_mapper_unloaded() -> None:
    class FailingLoader:
        def load(self, key: str) -> SoundHandle:
            if key == "mf/E4":
                raise RuntimeError("boom")
            return SoundHandle(key)

    m = PitchedMapper()
    with pytest.raises(RuntimeError):
        m.load(FailingLoader())
    assert not m.loaded
