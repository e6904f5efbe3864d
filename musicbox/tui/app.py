from __future__ import annotations

import curses
import shlex

from musicbox.io.session_yaml import load_session_yaml, save_session_yaml
from musicbox.sequencer.session import Session
from musicbox.sequencer.track import Track
from musicbox.sequencer.transport import TransportClock
from musicbox.tui.helptext import HELP_TEXT
from musicbox.tui.view import RenderCache, StyledLine, style_track

TRACKS = ("piano", "beats")


class MusicBoxApp:
    """Curses front end.

    Single-threaded: the key loop wakes for input or for the next tick
    deadline, whichever comes first.
    """

    def __init__(self, stdscr: "curses._CursesWindow", session: Session, transport: TransportClock) -> None:
        self.stdscr = stdscr
        self.session = session
        self.transport = transport
        self.selected: str = "piano"
        self.mode: str = "normal"  # normal|edit|command|help
        self.cmd_buffer: str = ""
        self.status: str = ""
        self.cache = RenderCache()

    # -------- lifecycle --------

    def run(self) -> None:
        curses.curs_set(0)
        self.stdscr.keypad(True)

        while True:
            self.draw()
            self.stdscr.timeout(self._wait_ms())
            ch = self.stdscr.getch()
            if ch != -1 and not self.handle_key(ch):
                break
            if self.transport.poll():
                err = getattr(self.transport.sink, "error", None)
                if err:
                    self.status = err

    def _wait_ms(self) -> int:
        wait = self.transport.time_until_due()
        if wait is None:
            return -1
        return max(1, int(wait * 1000))

    # -------- draw --------

    def frame(self) -> tuple:
        return (
            self.mode,
            self.selected,
            self.cmd_buffer,
            self.status,
            self.session.sync,
            self.session.playing,
            tuple(tuple(v) for v in self.session.render().values()),
        )

    def draw(self) -> None:
        # Ticks change the render model; key presses change the rest.
        if not self.cache.changed(self.frame()):
            return

        self.stdscr.erase()
        h, w = self.stdscr.getmaxyx()

        self.stdscr.addstr(0, 0, "musicbox"[: w - 1], curses.A_BOLD)
        header = (
            f"{'PLAY' if self.session.playing else 'PAUSE'}  "
            f"sync={'on' if self.session.sync else 'off'}  "
            f"step={self.session.piano_seq.step}  track={self.selected}"
        )
        self.stdscr.addstr(1, 0, header[: w - 1])

        if self.mode == "help":
            self.draw_help(h, w)
        else:
            y = 3
            render = self.session.render()
            for name in TRACKS:
                if y >= h - 3:
                    break
                attr = curses.A_UNDERLINE | (curses.A_BOLD if name == self.selected else 0)
                self.stdscr.addstr(y, 0, name[: w - 1], attr)
                y += 1
                styled = style_track(render[name])
                if not styled:
                    self.stdscr.addstr(y, 2, "(empty)"[: w - 3], curses.A_DIM)
                    y += 1
                for line in styled:
                    if y >= h - 3:
                        break
                    self.draw_line(y, 2, line, w)
                    y += 1
                y += 1

        self.stdscr.addstr(h - 2, 0, f"MODE={self.mode} {self.status}"[: w - 1], curses.A_DIM)

        if self.mode == "command":
            line = ":" + self.cmd_buffer
            self.stdscr.addstr(h - 1, 0, line[: w - 1])
            curses.curs_set(1)
            self.stdscr.move(h - 1, min(len(line), w - 2))
        elif self.mode == "edit":
            self.stdscr.addstr(h - 1, 0, f"editing {self.selected} (Esc to stop)"[: w - 1], curses.A_DIM)
            curses.curs_set(0)
        else:
            self.stdscr.addstr(
                h - 1,
                0,
                "Space play/pause | y sync | Tab track | e edit | : commands | ? help | q quit"[: w - 1],
                curses.A_DIM,
            )
            curses.curs_set(0)

        self.stdscr.refresh()

    def draw_line(self, y: int, x: int, line: StyledLine, w: int) -> None:
        room = max(0, w - x - 1)
        text = line.text[:room]
        if text:
            self.stdscr.addstr(y, x, text)
        if line.active is not None and line.active < room:
            self.stdscr.addstr(y, x + line.active, line.text[line.active], curses.A_REVERSE | curses.A_BOLD)

    def draw_help(self, h: int, w: int) -> None:
        lines = HELP_TEXT.strip("\n").splitlines()
        for i, line in enumerate(lines[: h - 4]):
            self.stdscr.addstr(3 + i, 0, line[: w - 1])

    # -------- input --------

    def handle_key(self, ch: int) -> bool:
        if self.mode == "help":
            self.mode = "normal"
            self.status = ""
            return True

        if self.mode == "command":
            return self.handle_text_input(ch)

        if self.mode == "edit":
            self.handle_edit(ch)
            return True

        if ch == ord("q"):
            return False

        if ch == ord("?"):
            self.mode = "help"
            return True

        if ch == ord(":"):
            self.mode = "command"
            self.cmd_buffer = ""
            return True

        if ch == ord(" "):
            playing = self.transport.toggle()
            self.status = "Playing" if playing else "Paused"
            return True

        if ch == ord("y"):
            self.status = "Sync " + ("on" if self.session.toggle_sync() else "off")
            return True

        if ch in (ord("\t"), curses.KEY_UP, curses.KEY_DOWN):
            self.selected = "beats" if self.selected == "piano" else "piano"
            return True

        if ch == ord("e"):
            self.mode = "edit"
            return True

        return True

    def selected_track(self) -> Track:
        return self.session.piano if self.selected == "piano" else self.session.beats

    def set_text(self, name: str, text: str) -> None:
        try:
            if name == "piano":
                self.session.update_piano(text)
            else:
                self.session.update_beats(text)
        except ValueError as e:
            self.status = f"Error: {e}"

    def handle_edit(self, ch: int) -> None:
        text = self.selected_track().text
        if ch == 27:
            self.mode = "normal"
            return
        if ch in (curses.KEY_ENTER, 10, 13):
            self.set_text(self.selected, text + "\n")
            return
        if ch in (curses.KEY_BACKSPACE, 127, 8):
            self.set_text(self.selected, text[:-1])
            return
        if 32 <= ch <= 126:
            self.set_text(self.selected, text + chr(ch))

    def handle_text_input(self, ch: int) -> bool:
        if ch in (curses.KEY_ENTER, 10, 13):
            text = self.cmd_buffer.strip()
            self.cmd_buffer = ""
            self.mode = "normal"
            if text:
                try:
                    self.run_command(text)
                except SystemExit:
                    return False
                except (OSError, ValueError) as e:
                    self.status = f"Error: {e}"
            return True

        if ch == 27:
            self.mode = "normal"
            self.cmd_buffer = ""
            return True

        if ch in (curses.KEY_BACKSPACE, 127, 8):
            self.cmd_buffer = self.cmd_buffer[:-1]
            return True

        if 0 <= ch <= 255:
            self.cmd_buffer += chr(ch)
        return True

    # -------- commands --------

    def run_command(self, text: str) -> None:
        args = shlex.split(text)
        cmd, *rest = args

        if cmd in {"quit", "q"}:
            raise SystemExit

        if cmd == "share":
            self.status = self.session.share_token()
            return

        if cmd == "open":
            if not rest:
                raise ValueError("usage: open <token>")
            if self.session.open_token(rest[0]):
                self.status = "Session opened"
            else:
                self.status = self.session.status
            return

        if cmd == "load":
            if not rest:
                raise ValueError("usage: load <session.yaml>")
            self.session.apply_state(load_session_yaml(rest[0]))
            self.status = f"Loaded {rest[0]}"
            return

        if cmd == "save":
            if not rest:
                raise ValueError("usage: save <session.yaml>")
            self.status = f"Saved {save_session_yaml(self.session.state(), rest[0])}"
            return

        if cmd == "clear":
            name = rest[0] if rest else self.selected
            if name not in TRACKS:
                raise ValueError(f"unknown track: {name}")
            self.set_text(name, "")
            return

        if cmd == "sync":
            self.status = "Sync " + ("on" if self.session.toggle_sync() else "off")
            return

        raise ValueError(f"unknown command: {cmd}")


def run_tui(session: Session, transport: TransportClock) -> None:
    def _main(stdscr: "curses._CursesWindow") -> None:
        MusicBoxApp(stdscr, session, transport).run()

    curses.wrapper(_main)
