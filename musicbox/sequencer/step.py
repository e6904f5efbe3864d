from __future__ import annotations

from musicbox.model.types import RenderCell, RenderLine, SoundHandle
from musicbox.sequencer.track import Track


def active_index(step: int, line_length: int, longest: int, sync: bool) -> int | None:
    """Position due in a line at `step`, or None when the line sits this step out.

    Synced lines share the longest line as denominator, so a short line is
    silent while the playhead is past its end. Independent lines wrap at
    their own length. Zero-length lines never have a position.
    """

    if line_length <= 0:
        return None
    if sync:
        if longest <= 0:
            return None
        idx = step % longest
        return idx if idx < line_length else None
    return step % line_length


class StepSequencer:
    """Playhead over one Track.

    The step counter only ever grows; positions come from modulo arithmetic,
    never from resetting the counter.
    """

    def __init__(self, track: Track) -> None:
        self.track = track
        self.step: int = 0

    def _positions(self, sync: bool) -> list[int | None]:
        longest = self.track.longest_line_length()
        return [active_index(self.step, len(line), longest, sync) for line in self.track.lines]

    def due(self, sync: bool) -> list[SoundHandle]:
        out: list[SoundHandle] = []
        for seq, idx in zip(self.track.sequences, self._positions(sync)):
            if idx is None:
                continue
            handle = seq[idx]
            if handle is not None:
                out.append(handle)
        return out

    def tick(self, sync: bool) -> list[SoundHandle]:
        # Duplicates are kept: two lines on the same sound fire twice.
        handles = self.due(sync)
        self.step += 1
        return handles

    def render(self, sync: bool) -> list[RenderLine]:
        out: list[RenderLine] = []
        for i, (line, idx) in enumerate(zip(self.track.lines, self._positions(sync))):
            cells = tuple(RenderCell(ch, j == idx) for j, ch in enumerate(line))
            out.append(RenderLine(index=i, cells=cells))
        return out
