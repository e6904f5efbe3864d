from __future__ import annotations

from musicbox.instruments.base import SampleLoader
from musicbox.instruments.percussion import PercussionMapper
from musicbox.instruments.pitched import PitchedMapper
from musicbox.io.share import MalformedStateError, decode_state, encode_state
from musicbox.model.types import RenderLine, SessionState, SoundHandle
from musicbox.sequencer.step import StepSequencer
from musicbox.sequencer.track import Track
from musicbox.util.notes import PITCH_ALPHABET
from musicbox.util.state_log import try_log_event


class Session:
    """Both tracks, their sequencers and the transport flags.

    The sync and play flags live here and are handed to the sequencers on
    every tick/render call.
    """

    def __init__(self, piano: PitchedMapper, beats: PercussionMapper) -> None:
        self.piano = Track(piano)
        self.beats = Track(beats)
        self.piano_seq = StepSequencer(self.piano)
        self.beats_seq = StepSequencer(self.beats)
        self.sync: bool = False
        self.playing: bool = False
        self.status: str = ""

    @staticmethod
    def create(loader: SampleLoader, *, pitch_alphabet: str = PITCH_ALPHABET) -> "Session":
        """Load both instruments; a LoadError from either one propagates."""
        piano = PitchedMapper(pitch_alphabet)
        beats = PercussionMapper()
        piano.load(loader)
        beats.load(loader)
        return Session(piano, beats)

    # -------- text --------

    def update_piano(self, text: str) -> None:
        self.piano.update(text)

    def update_beats(self, text: str) -> None:
        self.beats.update(text)

    # -------- transport --------

    def sequencers(self) -> list[StepSequencer]:
        return [self.piano_seq, self.beats_seq]

    def tick(self) -> list[SoundHandle]:
        out: list[SoundHandle] = []
        for seq in self.sequencers():
            out.extend(seq.tick(self.sync))
        return out

    def render(self) -> dict[str, list[RenderLine]]:
        return {
            "piano": self.piano_seq.render(self.sync),
            "beats": self.beats_seq.render(self.sync),
        }

    def toggle_sync(self) -> bool:
        self.sync = not self.sync
        return self.sync

    # -------- state --------

    def state(self) -> SessionState:
        return SessionState(piano=self.piano.text, beats=self.beats.text, sync=self.sync)

    def apply_state(self, state: SessionState) -> None:
        # Validate both texts before touching either track.
        Track(self.piano.mapper).update(state.piano)
        Track(self.beats.mapper).update(state.beats)
        self.update_piano(state.piano)
        self.update_beats(state.beats)
        self.sync = bool(state.sync)

    def share_token(self) -> str:
        return encode_state(self.state())

    def open_token(self, token: str) -> bool:
        """Apply a share token. A bad token is logged and leaves the session as it was."""
        try:
            state = decode_state(token)
            self.apply_state(state)
        except MalformedStateError as e:
            self.status = f"invalid session {token[:24]!r}: {e}"
            try_log_event("state_decode_failed", token=token[:256], error=str(e))
            return False
        except ValueError as e:
            self.status = f"session rejected: {e}"
            try_log_event("state_rejected", error=str(e))
            return False
        try_log_event("state_opened", piano_lines=len(self.piano.lines), beats_lines=len(self.beats.lines))
        return True
