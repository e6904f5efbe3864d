from __future__ import annotations

import time
from typing import Callable, Protocol

from musicbox.model.types import SoundHandle
from musicbox.util.tempo import TEMPO_BPM, seconds_per_beat


class TickSource(Protocol):
    playing: bool

    def tick(self) -> list[SoundHandle]:
        ...


class TriggerSink(Protocol):
    def trigger(self, handle: SoundHandle) -> None:
        ...


class TransportClock:
    """Fixed-tempo clock that ticks a session once per beat.

    It does not own a thread: the host loop calls poll() whenever it wakes up
    (or run() to block). Pausing stops future ticks; sounds already started
    keep ringing.
    """

    def __init__(
        self,
        source: TickSource,
        sink: TriggerSink,
        *,
        bpm: int = TEMPO_BPM,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self.sink = sink
        self.interval = seconds_per_beat(bpm)
        self.clock = clock
        self.sleep = sleep
        self.next_due: float | None = None
        self.ticks_fired = 0

    def play(self) -> None:
        if not self.source.playing:
            self.source.playing = True
            self.next_due = self.clock()

    def pause(self) -> None:
        self.source.playing = False
        self.next_due = None

    def toggle(self) -> bool:
        if self.source.playing:
            self.pause()
        else:
            self.play()
        return self.source.playing

    def fire(self) -> list[SoundHandle]:
        handles = self.source.tick()
        for h in handles:
            self.sink.trigger(h)
        self.ticks_fired += 1
        return handles

    def time_until_due(self) -> float | None:
        if not self.source.playing:
            return None
        if self.next_due is None:
            self.next_due = self.clock()
        return max(0.0, self.next_due - self.clock())

    def poll(self) -> bool:
        """Fire at most one tick if its deadline has passed."""
        if not self.source.playing:
            return False
        now = self.clock()
        if self.next_due is None:
            self.next_due = now
        if now < self.next_due:
            return False
        self.fire()
        self.next_due += self.interval
        if self.next_due < now:
            # Fell behind (suspended terminal, slow host); drop the backlog.
            self.next_due = now + self.interval
        return True

    def run(self, steps: int | None = None) -> int:
        """Block and tick until `steps` ticks fired or the transport is paused."""
        self.play()
        fired = 0
        while self.source.playing and (steps is None or fired < steps):
            wait = self.time_until_due()
            if wait:
                self.sleep(wait)
            if self.poll():
                fired += 1
        return fired
