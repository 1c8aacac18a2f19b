"""UI strategy selection.

Rules apply in order and later rules override earlier ones; the
machine-readable flag overrides everything.  Flags that influence the
choice are consumed so they never reach the dispatcher.
"""

from __future__ import annotations

from boxwrap.core import environment
from boxwrap.core.arguments import consume_flag
from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.models import UIMode
from boxwrap.core.protocols import TerminalProbe

NO_COLOR_FLAG = "--no-color"
FORCE_COLOR_FLAG = "--color"
MACHINE_READABLE_FLAG = "--machine-readable"


def select_ui_mode(native: list[str], env: RuntimeEnv, probe: TerminalProbe) -> UIMode:
    """Pick the UI mode and strip the flags that decided it from *native*."""
    mode = UIMode.COLORED

    if not probe.supports_color():
        mode = UIMode.BASIC

    if not probe.stdout_isatty() and not probe.is_cygwin():
        mode = UIMode.BASIC

    no_color_flag = consume_flag(native, NO_COLOR_FLAG)
    if no_color_flag or env.is_set(environment.NO_COLOR):
        mode = UIMode.BASIC

    force_color_flag = consume_flag(native, FORCE_COLOR_FLAG)
    if force_color_flag or env.is_set(environment.FORCE_COLOR):
        mode = UIMode.COLORED

    if consume_flag(native, MACHINE_READABLE_FLAG):
        mode = UIMode.MACHINE_READABLE

    return mode
