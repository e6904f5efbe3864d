from __future__ import annotations

import shutil
import subprocess
import sys
import threading
import time
from array import array

from musicbox.audio.mixer import Mixer
from musicbox.model.types import SoundHandle


# The single shared dynamics stage every voice passes through.
COMPRESSOR_FILTER = "acompressor=threshold=-18dB:ratio=4:attack=5:release=120,alimiter=limit=0.97"


def float_block_bytes(left: list[float], right: list[float]) -> bytes:
    """Interleave to little-endian float32 (ffmpeg f32le)."""
    buf = array("f", [0.0]) * (2 * len(left))
    buf[0::2] = array("f", left)
    buf[1::2] = array("f", right)
    if sys.byteorder != "little":
        buf.byteswap()
    return buf.tobytes()


class NullPlayback:
    """Records triggers without producing sound."""

    def __init__(self) -> None:
        self.triggered: list[SoundHandle] = []

    def trigger(self, handle: SoundHandle) -> None:
        self.triggered.append(handle)

    def close(self) -> None:
        return None


class LivePlayback:
    """Streams the mixer into one ffplay process.

    ffplay applies COMPRESSOR_FILTER to the summed stream, so all voices share
    one compressor. A feeder thread writes one block per block period and
    stays a couple of blocks ahead of the wall clock.
    """

    def __init__(
        self,
        mixer: Mixer,
        *,
        player: str = "ffplay",
        block_frames: int = 1024,
        lead_blocks: int = 2,
    ) -> None:
        self.mixer = mixer
        self.player = player
        self.block_frames = int(block_frames)
        self.lead_blocks = int(lead_blocks)
        self.proc: subprocess.Popen[bytes] | None = None
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self.error: str | None = None

    def command(self) -> list[str]:
        return [
            self.player,
            "-hide_banner",
            "-loglevel",
            "error",
            "-nodisp",
            "-f",
            "f32le",
            "-ar",
            str(self.mixer.sample_rate),
            "-ch_layout",
            "stereo",
            "-af",
            COMPRESSOR_FILTER,
            "-i",
            "pipe:0",
        ]

    def start(self) -> None:
        if self.proc is not None:
            return
        if shutil.which(self.player) is None:
            raise RuntimeError(f"{self.player} not found (install ffmpeg)")
        self.proc = subprocess.Popen(
            self.command(),
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self._stop.clear()
        self._thread = threading.Thread(target=self._feed, name="musicbox-playback", daemon=True)
        self._thread.start()

    def _feed(self) -> None:
        proc = self.proc
        assert proc is not None and proc.stdin is not None
        period = self.block_frames / float(self.mixer.sample_rate)
        t0 = time.monotonic()
        written = 0
        while not self._stop.is_set():
            ahead = (written * period) - (time.monotonic() - t0)
            if ahead > self.lead_blocks * period:
                time.sleep(ahead - self.lead_blocks * period)
                continue
            left, right = self.mixer.render_block(self.block_frames)
            try:
                proc.stdin.write(float_block_bytes(left, right))
                proc.stdin.flush()
            except (BrokenPipeError, OSError) as e:
                self.error = f"playback stopped: {e}"
                return
            written += 1

    def trigger(self, handle: SoundHandle) -> None:
        self.mixer.trigger(handle)

    def close(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        proc = self.proc
        self.proc = None
        if proc is None:
            return
        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except OSError:
                pass
        proc.terminate()
        try:
            proc.wait(timeout=2.0)
        except subprocess.TimeoutExpired:
            proc.kill()
