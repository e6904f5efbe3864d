from __future__ import annotations

import argparse
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from musicbox.audio.samples import HandleLoader, LoadError, SampleLibrary
from musicbox.io.session_yaml import dump_session_yaml, load_session_yaml, save_session_yaml
from musicbox.io.share import MalformedStateError, decode_state, encode_state
from musicbox.model.types import SessionState
from musicbox.sequencer.session import Session
from musicbox.tui.view import style_track
from musicbox.util.config import AppConfig, default_config_path, load_config
from musicbox.util.notes import all_sample_keys
from musicbox.util.state_log import events_log_path, try_log_event
from musicbox.util.tempo import TEMPO_BPM, ms_per_beat


@dataclass
class DoctorResult:
    ok: bool
    notes: list[str]


def _doctor(cfg: AppConfig) -> DoctorResult:
    notes: list[str] = []
    ok = True

    for tool, why in (("ffmpeg", "needed for mp3 samples and render"), ("ffplay", "needed for live playback")):
        found = shutil.which(tool)
        if found:
            notes.append(f"{tool}: OK ({found})")
        else:
            ok = False
            notes.append(f"{tool}: MISSING ({why})")

    root = cfg.resolve_samples_dir()
    if not root.is_dir():
        ok = False
        notes.append(f"samples: MISSING ({root})")
    else:
        lib = SampleLibrary(root, sample_rate=cfg.sample_rate)
        missing = lib.missing_keys(all_sample_keys())
        if missing:
            ok = False
            shown = ", ".join(missing[:8]) + (" ..." if len(missing) > 8 else "")
            notes.append(f"samples: {len(missing)} missing under {root} ({shown})")
        else:
            notes.append(f"samples: OK ({root})")

    notes.append(f"tempo: {TEMPO_BPM} bpm ({ms_per_beat():.0f} ms per step)")
    notes.append(f"python: {sys.version.split()[0]}")
    return DoctorResult(ok=ok, notes=notes)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="musicbox",
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "musicbox — type lines of text, hear them as a step sequence\n\n"
            "Piano rows qwertyu / asdfghj / zxcvbnm, beats a-z, anything else rests.\n"
        ),
    )
    p.add_argument("--version", action="store_true", help="Print version and exit.")
    p.add_argument("--config", default=None, help="Path to config.json")

    sub = p.add_subparsers(dest="cmd")
    sub.add_parser("doctor", help="Check for ffmpeg/ffplay and the sample files.")
    sub.add_parser("paths", help="Print the paths musicbox uses.")

    def _session_args(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("session", nargs="?", default=None, help="Session file (.yaml)")
        sp.add_argument("--token", default=None, help="Share token instead of a session file")
        sp.add_argument("--sync", action="store_true", default=None, help="Force sync mode on")

    play = sub.add_parser("play", help="Open the interactive sequencer.")
    _session_args(play)
    play.add_argument("--samples", default=None, help="Sample root directory")

    render = sub.add_parser("render", help="Bounce N steps to a WAV file.")
    _session_args(render)
    render.add_argument("--samples", default=None, help="Sample root directory")
    render.add_argument("--out", required=True, help="Output .wav path")
    render.add_argument("--steps", type=int, default=32, help="Number of steps (default 32)")
    render.add_argument("--no-compress", action="store_true", help="Skip the compressor (no ffmpeg needed)")

    preview = sub.add_parser("preview", help="Print the playhead for N steps (no audio).")
    _session_args(preview)
    preview.add_argument("--steps", type=int, default=8, help="Number of steps (default 8)")

    share = sub.add_parser("share", help="Print the share token for a session file.")
    share.add_argument("session", help="Session file (.yaml)")

    op = sub.add_parser("open", help="Decode a share token to a session file.")
    op.add_argument("token", help="Share token")
    op.add_argument("--out", default=None, help="Write YAML here instead of stdout")

    return p


def _load_state(args: argparse.Namespace) -> SessionState:
    state = SessionState()
    if args.session is not None:
        try:
            state = load_session_yaml(Path(args.session).expanduser())
        except (OSError, ValueError) as e:
            raise SystemExit(f"ERROR: could not read session {args.session} ({e})")
    if args.token is not None:
        # A bad token is reported and otherwise ignored, like a bad URL fragment.
        try:
            state = decode_state(args.token)
        except MalformedStateError as e:
            try_log_event("state_decode_failed", token=str(args.token)[:256], error=str(e))
            print(f"warning: ignoring session token ({e})", file=sys.stderr)
    if args.sync:
        state.sync = True
    return state


def _library(cfg: AppConfig, samples: str | None) -> SampleLibrary:
    root = Path(samples).expanduser() if samples else cfg.resolve_samples_dir()
    return SampleLibrary(root, sample_rate=cfg.sample_rate)


def _session(loader: HandleLoader | SampleLibrary, state: SessionState) -> Session:
    try:
        session = Session.create(loader)
    except LoadError as e:
        try_log_event("sample_load_failed", key=e.key, error=str(e))
        raise SystemExit(f"ERROR: {e}\nRun: musicbox doctor")
    try:
        session.apply_state(state)
    except ValueError as e:
        raise SystemExit(f"ERROR: {e}")
    return session


def _preview_lines(session: Session, steps: int) -> list[str]:
    out: list[str] = []
    for _ in range(steps):
        step = session.piano_seq.step
        render = session.render()
        handles = session.tick()
        out.append(f"step {step}: " + (" ".join(h.key for h in handles) or "-"))
        for name in ("piano", "beats"):
            for line in style_track(render[name]):
                marker = " " * line.active + "^" if line.active is not None else ""
                out.append(f"  {name:5} |{line.text}|")
                if marker:
                    out.append(f"  {'':5}  {marker}")
    return out


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "version", False):
        try:
            from importlib.metadata import version

            v = version("musicbox")
        except Exception:
            v = "0.0.0"
        print(f"musicbox {v}")
        return

    cfg_path = Path(args.config).expanduser() if args.config else None
    cfg = load_config(cfg_path)

    if args.cmd == "doctor":
        res = _doctor(cfg)
        status = "OK" if res.ok else "MISSING_DEPS"
        print(f"musicbox doctor: {status}")
        for n in res.notes:
            print(f"- {n}")
        if not res.ok:
            print("\nLinux (Debian/Ubuntu): sudo apt-get install ffmpeg")
            print("macOS: brew install ffmpeg")
        return

    if args.cmd == "paths":
        print(f"config: {cfg_path or default_config_path()}")
        print(f"events: {events_log_path()}")
        print(f"samples: {cfg.resolve_samples_dir()}")
        return

    if args.cmd == "share":
        try:
            state = load_session_yaml(Path(args.session).expanduser())
        except (OSError, ValueError) as e:
            raise SystemExit(f"ERROR: could not read session {args.session} ({e})")
        print(encode_state(state))
        return

    if args.cmd == "open":
        try:
            state = decode_state(args.token)
        except MalformedStateError as e:
            try_log_event("state_decode_failed", token=str(args.token)[:256], error=str(e))
            raise SystemExit(f"ERROR: {e}")
        if args.out:
            print(save_session_yaml(state, args.out))
        else:
            sys.stdout.write(dump_session_yaml(state))
        return

    if args.cmd == "preview":
        if args.steps <= 0:
            raise SystemExit("ERROR: --steps must be > 0")
        session = _session(HandleLoader(), _load_state(args))
        for line in _preview_lines(session, args.steps):
            print(line)
        return

    if args.cmd == "render":
        from musicbox.audio.render import bounce_wav

        lib = _library(cfg, args.samples)
        session = _session(lib, _load_state(args))
        try:
            result = bounce_wav(session, lib, args.out, steps=args.steps, compress=not args.no_compress)
        except ValueError as e:
            raise SystemExit(f"ERROR: {e}")
        except FileNotFoundError as e:
            raise SystemExit(f"ERROR: ffmpeg not available ({e}). Try --no-compress")
        except subprocess.CalledProcessError as e:
            raise SystemExit(f"ERROR: ffmpeg failed ({e})")
        print(f"wrote {args.out} ({result.seconds:.2f}s, {len(result.triggers)} hits)")
        return

    if args.cmd == "play":
        from musicbox.audio.mixer import Mixer
        from musicbox.audio.playback import LivePlayback
        from musicbox.sequencer.transport import TransportClock
        from musicbox.tui.app import run_tui

        lib = _library(cfg, args.samples)
        print("loading samples...")
        session = _session(lib, _load_state(args))
        playback = LivePlayback(Mixer(lib), player=cfg.player)
        try:
            playback.start()
        except RuntimeError as e:
            raise SystemExit(f"ERROR: {e}")
        try:
            run_tui(session, TransportClock(session, playback))
        finally:
            playback.close()
        print(session.share_token())
        return

    parser.print_help()


if __name__ == "__main__":
    main()
