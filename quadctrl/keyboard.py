"""Command panel driven by single key presses on a terminal."""

from __future__ import annotations

import os
import select
import sys
import threading
import time

from quadctrl.enums import UserCommand
from quadctrl.messages import CmdPanel

try:
    import termios
except ImportError:  # pragma: no cover - non-POSIX platforms
    termios = None

__all__ = ["KeyBoard"]

_COMMAND_KEYS = {
    "1": UserCommand.L2_B,
    "2": UserCommand.L2_A,
    "3": UserCommand.L2_X,
    "4": UserCommand.START,
    "5": UserCommand.L2_Y,
    "0": UserCommand.L1_X,
    "9": UserCommand.L1_A,
    "8": UserCommand.L1_Y,
}

# key -> (axis, direction, uses left sensitivity)
_VALUE_KEYS = {
    "w": ("ly", 1, True),
    "s": ("ly", -1, True),
    "d": ("lx", 1, True),
    "a": ("lx", -1, True),
    "i": ("ry", 1, False),
    "k": ("ry", -1, False),
    "l": ("rx", 1, False),
    "j": ("rx", -1, False),
}


class KeyBoard(CmdPanel):
    """Reads keys from a file descriptor (stdin by default) in a background thread.

    Digits select commands, ``wasd`` move the left stick, ``ijkl`` the right
    stick, and the space bar centres both sticks.
    """

    def __init__(
        self,
        fd: int | None = None,
        sensitivity_left: float = 0.05,
        sensitivity_right: float = 0.05,
    ) -> None:
        super().__init__()
        self.sensitivity_left = sensitivity_left
        self.sensitivity_right = sensitivity_right
        self._fd = fd
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._old_settings = None

    def check_cmd(self, c: str) -> UserCommand:
        """Return the command bound to key ``c``; space also centres the sticks."""
        if c == " ":
            self.user_value.set_zero()
            return UserCommand.NONE
        return _COMMAND_KEYS.get(c, UserCommand.NONE)

    def change_value(self, c: str) -> None:
        """Nudge a stick value according to key ``c``, within [-1, 1]."""
        binding = _VALUE_KEYS.get(c.lower())
        if binding is None:
            return
        axis, direction, left = binding
        step = self.sensitivity_left if left else self.sensitivity_right
        current = getattr(self.user_value, axis)
        if direction > 0:
            new = min(current + step, 1.0)
        else:
            new = max(current - step, -1.0)
        setattr(self.user_value, axis, new)

    def handle_key(self, c: str) -> None:
        """Process one key press."""
        self.user_cmd = self.check_cmd(c)
        if self.user_cmd == UserCommand.NONE:
            self.change_value(c)

    def start(self) -> None:
        """Switch the terminal to raw key input and start reading keys."""
        if self._thread is not None:
            raise RuntimeError("keyboard reader already running")
        fd = sys.stdin.fileno() if self._fd is None else self._fd
        self._fd = fd
        if termios is not None and os.isatty(fd):
            self._old_settings = termios.tcgetattr(fd)
            new = termios.tcgetattr(fd)
            new[3] &= ~(termios.ICANON | termios.ECHO)
            termios.tcsetattr(fd, termios.TCSANOW, new)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="keyboard", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop reading keys and restore the terminal settings."""
        if self._thread is not None:
            self._stop_event.set()
            self._thread.join()
            self._thread = None
        if self._old_settings is not None and termios is not None:
            termios.tcsetattr(self._fd, termios.TCSANOW, self._old_settings)
            self._old_settings = None

    def __enter__(self) -> KeyBoard:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            ready, _, _ = select.select([self._fd], [], [], 0.05)
            if ready:
                data = os.read(self._fd, 1)
                if not data:
                    break
                self.handle_key(data.decode("latin-1"))
            time.sleep(0.001)