"""Infrastructure: terminal capability probing.

Satisfies :class:`~boxwrap.core.protocols.TerminalProbe`.  Color support
is asked of Rich, which knows about dumb terminals and legacy Windows
consoles; without Rich installed nothing can be colored anyway.  Rich
reads ``TERM`` and ``COLORTERM`` from the mapping given to the probe,
not from ``os.environ``.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import TextIO


class SystemTerminalProbe:
    """Probe the real terminal attached to this process."""

    def __init__(self, environ: Mapping[str, str], stream: TextIO | None = None) -> None:
        self._environ = environ
        self._stream = stream if stream is not None else sys.stdout

    def supports_color(self) -> bool:
        try:
            from rich.console import Console
        except ModuleNotFoundError:
            return False
        # force_terminal: TTY detection is a separate rule.
        console = Console(file=self._stream, force_terminal=True, _environ=dict(self._environ))
        return console.color_system is not None

    def stdout_isatty(self) -> bool:
        isatty = getattr(self._stream, "isatty", None)
        return bool(isatty and isatty())

    def is_cygwin(self) -> bool:
        if sys.platform in ("cygwin", "msys"):
            return True
        return self._environ.get("TERM", "").startswith("cygwin")
