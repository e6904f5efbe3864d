from __future__ import annotations

import shutil
import subprocess
import tempfile
import wave
from dataclasses import dataclass
from pathlib import Path

from musicbox.model.types import SoundHandle


SAMPLE_EXTENSIONS: tuple[str, ...] = (".wav", ".mp3", ".ogg", ".flac")

# Key prefix -> directory under the sample root.
DEFAULT_LAYOUT: dict[str, str] = {
    "ff": "piano/ff",
    "mf": "piano/mf",
    "beat": "beats",
}


class LoadError(RuntimeError):
    def __init__(self, key: str, reason: str, path: Path | None = None) -> None:
        where = f" ({path})" if path is not None else ""
        super().__init__(f"could not load sample {key!r}{where}: {reason}")
        self.key = key
        self.path = path


@dataclass(frozen=True)
class Sample:
    key: str
    left: list[float]
    right: list[float]
    sample_rate: int

    @property
    def frames(self) -> int:
        return len(self.left)


def _pcm16_to_float(data: bytes) -> list[float]:
    count = len(data) // 2
    samples = [0.0] * count
    for i in range(count):
        v = int.from_bytes(data[2 * i : 2 * i + 2], "little", signed=True)
        samples[i] = v / 32768.0
    return samples


def read_wav(path: Path) -> tuple[list[float], list[float], int, int]:
    """Read a PCM WAV. Returns (left, right, sample_rate, sample_width).

    Only 16-bit data is decoded here; for other widths the sample lists are
    empty and the caller should transcode.
    """

    with wave.open(str(path), "rb") as wf:
        sr = int(wf.getframerate())
        ch = int(wf.getnchannels())
        sw = int(wf.getsampwidth())
        data = wf.readframes(wf.getnframes())

    if sw != 2:
        return [], [], sr, sw

    samples = _pcm16_to_float(data)
    if ch == 1:
        return samples, samples[:], sr, sw
    return samples[0::ch], samples[1::ch], sr, sw


def transcode_to_wav(src: Path, dst: Path, *, sample_rate: int) -> None:
    """Decode any ffmpeg-readable file to 16-bit stereo WAV at `sample_rate`."""
    cmd: list[str] = [
        "ffmpeg",
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-i",
        str(src),
        "-ar",
        str(int(sample_rate)),
        "-ac",
        "2",
        "-acodec",
        "pcm_s16le",
        str(dst),
    ]
    subprocess.run(cmd, check=True, capture_output=True)


class SampleLibrary:
    """Loads and owns decoded samples under a root directory.

    Keys look like "ff/C4" or "beat/q"; the prefix picks a directory from the
    layout and the rest is the file stem.
    """

    def __init__(self, root: str | Path, *, sample_rate: int = 44100, layout: dict[str, str] | None = None) -> None:
        self.root = Path(root).expanduser()
        self.sample_rate = int(sample_rate)
        self.layout = dict(layout or DEFAULT_LAYOUT)
        self._samples: dict[str, Sample] = {}

    def __contains__(self, handle: SoundHandle) -> bool:
        return handle.key in self._samples

    def __len__(self) -> int:
        return len(self._samples)

    def _stem_path(self, key: str) -> Path:
        prefix, sep, name = key.partition("/")
        if not sep or not name or prefix not in self.layout:
            raise LoadError(key, "unknown sample key")
        return self.root / self.layout[prefix] / name

    def find(self, key: str) -> Path | None:
        stem = self._stem_path(key)
        for ext in SAMPLE_EXTENSIONS:
            p = stem.with_name(stem.name + ext)
            if p.is_file():
                return p
        return None

    def missing_keys(self, keys: list[str]) -> list[str]:
        out: list[str] = []
        for k in keys:
            try:
                if self.find(k) is None:
                    out.append(k)
            except LoadError:
                out.append(k)
        return out

    def _decode(self, key: str, path: Path) -> Sample:
        reason = "ffmpeg is required to decode this file"
        if path.suffix.lower() == ".wav":
            try:
                left, right, sr, sw = read_wav(path)
            except (wave.Error, EOFError) as e:
                # e.g. float WAV; ffmpeg may still read it
                reason = str(e)
            else:
                if sw == 2 and sr == self.sample_rate:
                    return Sample(key=key, left=left, right=right, sample_rate=sr)

        if shutil.which("ffmpeg") is None:
            raise LoadError(key, reason, path)

        with tempfile.TemporaryDirectory(prefix="musicbox_") as td:
            tmp = Path(td) / "decoded.wav"
            try:
                transcode_to_wav(path, tmp, sample_rate=self.sample_rate)
                left, right, sr, _sw = read_wav(tmp)
            except subprocess.CalledProcessError as e:
                err = (e.stderr or b"").decode("utf-8", errors="replace").strip()
                raise LoadError(key, err or f"ffmpeg exited with {e.returncode}", path) from e
            except (wave.Error, EOFError) as e:
                raise LoadError(key, str(e), path) from e
        return Sample(key=key, left=left, right=right, sample_rate=sr)

    def load(self, key: str) -> SoundHandle:
        if key in self._samples:
            return SoundHandle(key)
        path = self.find(key)
        if path is None:
            raise LoadError(key, "no sample file found", self._stem_path(key))
        sample = self._decode(key, path)
        if sample.frames == 0:
            raise LoadError(key, "sample is empty", path)
        self._samples[key] = sample
        return SoundHandle(key)

    def sample(self, handle: SoundHandle) -> Sample:
        try:
            return self._samples[handle.key]
        except KeyError:
            raise KeyError(f"sample not loaded: {handle.key}") from None


class HandleLoader:
    """Resolves keys to handles without reading audio (previews, tests)."""

    def __init__(self) -> None:
        self.keys: list[str] = []

    def load(self, key: str) -> SoundHandle:
        self.keys.append(key)
        return SoundHandle(key)
