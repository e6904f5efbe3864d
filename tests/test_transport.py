from __future__ import annotations

from musicbox.audio.playback import NullPlayback
from musicbox.audio.samples import HandleLoader
from musicbox.model.types import SoundHandle
from musicbox.sequencer.session import Session
from musicbox.sequencer.transport import TransportClock
from musicbox.util.tempo import TEMPO_BPM, ms_per_beat


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, dt: float) -> None:
        self.now += dt


def _transport(piano: str = "", beats: str = "") -> tuple[Session, NullPlayback, TransportClock, FakeClock]:
    session = Session.create(HandleLoader())
    session.update_piano(piano)
    session.update_beats(beats)
    sink = NullPlayback()
    clock = FakeClock()
    transport = TransportClock(session, sink, clock=clock, sleep=clock.sleep)
    return session, sink, transport, clock


def test_tempo_is_fixed() -> None:
    assert TEMPO_BPM == 120
    assert ms_per_beat() == 500.0


def test_poll_does_nothing_while_paused() -> None:
    session, sink, transport, clock = _transport(beats="a")
    assert not transport.poll()
    assert transport.time_until_due() is None
    assert session.piano_seq.step == 0
    assert sink.triggered == []


def test_poll_fires_once_per_interval() -> None:
    session, sink, transport, clock = _transport(piano="q", beats="ab")
    transport.play()
    assert transport.poll()
    assert not transport.poll()
    assert sink.triggered == [SoundHandle("mf/C3"), SoundHandle("beat/a")]

    clock.now += 0.25
    assert not transport.poll()
    assert transport.time_until_due() == 0.25

    clock.now += 0.25
    assert transport.poll()
    assert sink.triggered[-1] == SoundHandle("beat/b")
    assert session.piano_seq.step == 2
    assert session.beats_seq.step == 2


def test_sequencers_tick_in_lockstep_even_when_one_is_empty() -> None:
    session, sink, transport, clock = _transport(beats="abc")
    for _ in range(4):
        transport.fire()
    assert session.piano_seq.step == session.beats_seq.step == 4


def test_pause_stops_future_ticks() -> None:
    session, sink, transport, clock = _transport(beats="a")
    transport.play()
    transport.poll()
    assert transport.toggle() is False
    clock.now += 5.0
    assert not transport.poll()
    assert len(sink.triggered) == 1


def test_falling_behind_drops_the_backlog() -> None:
    session, sink, transport, clock = _transport(beats="a")
    transport.play()
    transport.poll()
    clock.now += 10.0
    assert transport.poll()
    assert not transport.poll()
    assert transport.ticks_fired == 2


def test_run_blocks_for_given_steps() -> None:
    session, sink, transport, clock = _transport(beats="ab")
    start = clock.now
    assert transport.run(steps=4) == 4
    assert [h.key for h in sink.triggered] == ["beat/a", "beat/b", "beat/a", "beat/b"]
    assert clock.now - start == 1.5


def test_sync_flag_is_read_at_tick_time() -> None:
    session, sink, transport, clock = _transport(beats="ab\nwxyz")
    session.sync = True
    for _ in range(3):
        transport.fire()
    # step 2 of 4 in sync: the short line rests
    assert sink.triggered[-1] == SoundHandle("beat/y")
    session.sync = False
    transport.fire()
    assert sink.triggered[-2:] == [SoundHandle("beat/b"), SoundHandle("beat/z")]
