"""Output strategies, one per :class:`~boxwrap.core.models.UIMode`.

* :class:`BasicUI` — plain text; info/success to stdout, warn/error to
  stderr.
* :class:`ColoredUI` — same channels, styled through Rich.
* :class:`MachineReadableUI` — every message becomes a
  ``timestamp,target,type,data...`` line on stdout.

All three accept :meth:`machine` records.  Only the machine-readable UI
prints them; the others send them to the log so they stay out of
human-facing output.  The ``error-exit`` record is the exception: every
strategy prints it to stdout through :meth:`BasicUI.error_exit`.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable, Iterable
from typing import Any, TextIO

from boxwrap.cli.console import get_rich_console
from boxwrap.core.models import UIMode

logger = logging.getLogger(__name__)

COMMA_ESCAPE = "%!(BOXWRAP_COMMA)"
ERROR_EXIT = "error-exit"
_ERROR_CHANNEL: frozenset[str] = frozenset({"warn", "error"})

Clock = Callable[[], float]


class BasicUI:
    """Plain-text output."""

    mode: UIMode = UIMode.BASIC

    def __init__(
        self,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        *,
        clock: Clock = time.time,
    ) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._clock = clock

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr if self._stderr is not None else sys.stderr

    def info(self, message: str) -> None:
        self._say("info", message)

    def success(self, message: str) -> None:
        self._say("success", message)

    def warn(self, message: str) -> None:
        self._say("warn", message)

    def error(self, message: str) -> None:
        self._say("error", message)

    def machine(self, type_: str, *data: str, target: str = "") -> None:
        logger.info("Machine: %s %s %s", target, type_, list(data))

    def error_exit(self, error_class: str, message: str) -> None:
        """Print the ``error-exit`` record, whatever the mode."""
        self._write_record(ERROR_EXIT, (error_class, message))

    def _write_record(self, type_: str, data: Iterable[object], target: str = "") -> None:
        line = format_record(int(self._clock()), target, type_, data)
        print(line, file=self.stdout, flush=True)

    def _stream_for(self, type_: str) -> TextIO:
        return self.stderr if type_ in _ERROR_CHANNEL else self.stdout

    def _say(self, type_: str, message: str) -> None:
        print(message, file=self._stream_for(type_), flush=True)


class ColoredUI(BasicUI):
    """Rich-styled output.

    Raises :class:`~boxwrap.exceptions.EnvironmentError` on construction
    when Rich is not installed.
    """

    mode = UIMode.COLORED

    STYLES: dict[str, str | None] = {
        "info": None,
        "success": "green",
        "warn": "yellow",
        "error": "bold red",
    }

    def __init__(
        self,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        *,
        clock: Clock = time.time,
    ) -> None:
        super().__init__(stdout, stderr, clock=clock)
        self._out = self._console(self.stdout)
        self._err = self._console(self.stderr)

    @staticmethod
    def _console(stream: TextIO) -> Any:
        # Forced: the mode was already chosen, possibly with --color on a pipe.
        return get_rich_console(stderr=False, file=stream, force_terminal=True, highlight=False)

    def _say(self, type_: str, message: str) -> None:
        console = self._err if type_ in _ERROR_CHANNEL else self._out
        console.print(message, style=self.STYLES.get(type_), markup=False)


class MachineReadableUI(BasicUI):
    """Structured output for tooling integrations."""

    mode = UIMode.MACHINE_READABLE

    def machine(self, type_: str, *data: str, target: str = "") -> None:
        self._write_record(type_, data, target)

    def _say(self, type_: str, message: str) -> None:
        self.machine("ui", type_, message)


def escape(value: object) -> str:
    """Escape one data field of a machine-readable line."""
    return (
        str(value)
        .replace(",", COMMA_ESCAPE)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def format_record(timestamp: int, target: str, type_: str, data: Iterable[object]) -> str:
    """Return one ``timestamp,target,type,data...`` line."""
    return ",".join([str(timestamp), target, type_, *(escape(item) for item in data)])


UI_CLASSES: dict[UIMode, type[BasicUI]] = {
    UIMode.BASIC: BasicUI,
    UIMode.COLORED: ColoredUI,
    UIMode.MACHINE_READABLE: MachineReadableUI,
}


def build_ui(mode: UIMode) -> BasicUI:
    return UI_CLASSES[mode]()
