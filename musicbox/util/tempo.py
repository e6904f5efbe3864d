from __future__ import annotations

# Fixed tempo. One sequencer tick per beat.
TEMPO_BPM = 120


def seconds_per_beat(bpm: int = TEMPO_BPM) -> float:
    if bpm <= 0:
        raise ValueError(f"bpm must be > 0: {bpm}")
    return 60.0 / float(bpm)


def ms_per_beat(bpm: int = TEMPO_BPM) -> float:
    return seconds_per_beat(bpm) * 1000.0


def frames_per_beat(sample_rate: int, bpm: int = TEMPO_BPM) -> int:
    return int(round(seconds_per_beat(bpm) * int(sample_rate)))
