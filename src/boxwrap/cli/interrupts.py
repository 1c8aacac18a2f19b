"""SIGINT policy for the two phases of a run.

Until the dispatcher starts, an interrupt ends the process at once with
status 130 and no cleanup.  Once it runs, SIGINT raises
``KeyboardInterrupt`` so teardown can happen.

This module is imported before anything else in the package, so it must
only use the standard library.
"""

from __future__ import annotations

import os
import signal
import threading
from types import FrameType

from boxwrap.cli import exit_codes


def _abort_on_interrupt(signum: int, frame: FrameType | None) -> None:
    os._exit(exit_codes.KEYBOARD_INTERRUPT)


def install_early_interrupt_trap() -> None:
    """Exit at once on SIGINT until the dispatcher installs its own policy."""
    signal.signal(signal.SIGINT, _abort_on_interrupt)


def install_interrupt_policy() -> None:
    """Replace the early hard-exit SIGINT trap with ``KeyboardInterrupt``."""
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, signal.default_int_handler)
