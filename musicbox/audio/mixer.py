from __future__ import annotations

import threading
from dataclasses import dataclass

from musicbox.audio.samples import Sample, SampleLibrary
from musicbox.model.types import SoundHandle


@dataclass
class Voice:
    """One playback instance of a sample. Never shared between triggers."""

    sample: Sample
    pos: int = 0
    gain: float = 1.0

    @property
    def done(self) -> bool:
        return self.pos >= self.sample.frames


class Mixer:
    """Sums independent voices into float stereo blocks.

    trigger() may be called from the tick loop while another thread pulls
    blocks; both sides take the lock.
    """

    def __init__(self, library: SampleLibrary, *, gain: float = 0.5) -> None:
        self.library = library
        self.gain = float(gain)
        self.voices: list[Voice] = []
        self._lock = threading.Lock()

    @property
    def sample_rate(self) -> int:
        return self.library.sample_rate

    def trigger(self, handle: SoundHandle) -> Voice:
        voice = Voice(sample=self.library.sample(handle), gain=self.gain)
        with self._lock:
            self.voices.append(voice)
        return voice

    def active_voices(self) -> int:
        with self._lock:
            return len(self.voices)

    def render_block(self, frames: int) -> tuple[list[float], list[float]]:
        left = [0.0] * frames
        right = [0.0] * frames
        with self._lock:
            for v in self.voices:
                n = min(frames, v.sample.frames - v.pos)
                sl = v.sample.left
                sr = v.sample.right
                for i in range(n):
                    left[i] += sl[v.pos + i] * v.gain
                    right[i] += sr[v.pos + i] * v.gain
                v.pos += n
            self.voices = [v for v in self.voices if not v.done]
        return left, right


def mix_into(left: list[float], right: list[float], sample: Sample, offset: int, gain: float = 1.0) -> None:
    """Add a whole sample at `offset`, growing the buffers as needed."""
    end = offset + sample.frames
    if len(left) < end:
        left.extend([0.0] * (end - len(left)))
    if len(right) < end:
        right.extend([0.0] * (end - len(right)))
    for i in range(sample.frames):
        left[offset + i] += sample.left[i] * gain
        right[offset + i] += sample.right[i] * gain
