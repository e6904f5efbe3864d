from __future__ import annotations

from dataclasses import dataclass

from musicbox.model.types import RenderLine


# Shown in place of blank cells so rests stay visible under the playhead.
PLACEHOLDER = "·"


@dataclass(frozen=True)
class StyledLine:
    text: str
    active: int | None


def display_char(ch: str) -> str:
    if ch.isspace() or not ch.isprintable():
        return PLACEHOLDER
    return ch


def style_line(line: RenderLine) -> StyledLine:
    # Substitution happens here only; the active position comes straight
    # from the render model.
    return StyledLine(
        text="".join(display_char(c.char) for c in line.cells),
        active=line.active_index(),
    )


def style_track(lines: list[RenderLine]) -> list[StyledLine]:
    return [style_line(ln) for ln in lines]


class RenderCache:
    """Remembers the last frame so unchanged frames can skip the redraw."""

    def __init__(self) -> None:
        self._last: object | None = None

    def changed(self, frame: object) -> bool:
        if frame == self._last:
            return False
        self._last = frame
        return True

    def invalidate(self) -> None:
        self._last = None
