from __future__ import annotations

from musicbox.instruments.base import CharacterMapper
from musicbox.model.types import SoundHandle
from musicbox.util.limits import MAX_LINE_LENGTH, MAX_LINES, MAX_TEXT_CHARS


def split_lines(text: str) -> list[str]:
    """Split text into lines, keeping empty ones.

    Empty text has no lines at all. A trailing newline yields a trailing
    empty line, the same as any other empty line.
    """

    if not text:
        return []
    return text.replace("\r\n", "\n").split("\n")


class Track:
    """One text body and the sound sequence derived from it.

    Derived state is rebuilt wholesale on every update; identical text always
    resolves to identical sequences.
    """

    def __init__(self, mapper: CharacterMapper) -> None:
        self.mapper = mapper
        self.text: str = ""
        self.lines: list[str] = []
        self.sequences: list[list[SoundHandle | None]] = []

    def update(self, text: str) -> None:
        if len(text) > MAX_TEXT_CHARS:
            raise ValueError(f"text too long: {len(text)} chars (max {MAX_TEXT_CHARS})")
        lines = split_lines(text)
        if len(lines) > MAX_LINES:
            raise ValueError(f"too many lines: {len(lines)} (max {MAX_LINES})")
        for i, line in enumerate(lines):
            if len(line) > MAX_LINE_LENGTH:
                raise ValueError(f"line {i} too long: {len(line)} chars (max {MAX_LINE_LENGTH})")
        sequences = [[self.mapper.map(ch) for ch in line] for line in lines]

        self.text = text
        self.lines = lines
        self.sequences = sequences

    def longest_line_length(self) -> int:
        return max((len(line) for line in self.lines), default=0)

    def is_empty(self) -> bool:
        return self.longest_line_length() == 0
