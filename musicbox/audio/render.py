from __future__ import annotations

import subprocess
import tempfile
import wave
from dataclasses import dataclass, field
from pathlib import Path

from musicbox.audio.mixer import mix_into
from musicbox.audio.playback import COMPRESSOR_FILTER, float_block_bytes
from musicbox.audio.samples import SampleLibrary
from musicbox.model.types import SoundHandle
from musicbox.sequencer.session import Session
from musicbox.util.limits import MAX_RENDER_STEPS
from musicbox.util.tempo import TEMPO_BPM, frames_per_beat


@dataclass
class BounceResult:
    left: list[float]
    right: list[float]
    sample_rate: int
    steps: int
    triggers: list[tuple[int, SoundHandle]] = field(default_factory=list)

    @property
    def seconds(self) -> float:
        return len(self.left) / float(self.sample_rate) if self.sample_rate else 0.0


def bounce_session(
    session: Session,
    library: SampleLibrary,
    *,
    steps: int,
    gain: float = 0.5,
    bpm: int = TEMPO_BPM,
) -> BounceResult:
    """Tick the session `steps` times at the fixed tempo and mix every trigger.

    Each trigger is mixed as its own voice starting at its step, so repeated
    hits of one sample overlap instead of cutting each other off.
    """

    if steps <= 0:
        raise ValueError("steps must be > 0")
    if steps > MAX_RENDER_STEPS:
        raise ValueError(f"steps too large: {steps} (max {MAX_RENDER_STEPS})")

    sr = library.sample_rate
    step_frames = frames_per_beat(sr, bpm)
    total = step_frames * steps
    left = [0.0] * total
    right = [0.0] * total
    triggers: list[tuple[int, SoundHandle]] = []

    for i in range(steps):
        for h in session.tick():
            triggers.append((i, h))
            mix_into(left, right, library.sample(h), i * step_frames, gain)

    return BounceResult(left=left, right=right, sample_rate=sr, steps=steps, triggers=triggers)


def write_wav_stereo(path: Path, left: list[float], right: list[float], *, sample_rate: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    def _i16(x: float) -> int:
        v = max(-1.0, min(1.0, float(x)))
        return int(v * 32767.0)

    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(2)
        wf.setsampwidth(2)
        wf.setframerate(int(sample_rate))
        frames = bytearray()
        for a, b in zip(left, right):
            frames += int.to_bytes(_i16(a), 2, "little", signed=True)
            frames += int.to_bytes(_i16(b), 2, "little", signed=True)
        wf.writeframes(bytes(frames))


def compress_to_wav(result: BounceResult, out_wav: str | Path) -> str:
    """Run the mix through the shared compressor via ffmpeg."""
    outp = Path(out_wav)
    outp.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(prefix="musicbox_") as td:
        raw = Path(td) / "mix.f32"
        raw.write_bytes(float_block_bytes(result.left, result.right))
        cmd: list[str] = [
            "ffmpeg",
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "f32le",
            "-ar",
            str(int(result.sample_rate)),
            "-ch_layout",
            "stereo",
            "-i",
            str(raw),
            "-af",
            COMPRESSOR_FILTER,
            "-acodec",
            "pcm_s16le",
            str(outp),
        ]
        subprocess.run(cmd, check=True)
    return str(outp)


def bounce_wav(
    session: Session,
    library: SampleLibrary,
    out_wav: str | Path,
    *,
    steps: int,
    compress: bool = True,
) -> BounceResult:
    result = bounce_session(session, library, steps=steps)
    if compress:
        compress_to_wav(result, out_wav)
    else:
        write_wav_stereo(Path(out_wav), result.left, result.right, sample_rate=result.sample_rate)
    return result
