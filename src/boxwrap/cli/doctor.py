"""``boxwrap doctor`` — runtime diagnostics command.

Gathers facts about the interpreter, the prepared runtime and the
plugin set, and renders them as a Rich table, plain text, or
machine-readable ``doctor-check`` records depending on the active UI.

No business logic resides here; it purely collects and displays
diagnostic data.
"""

from __future__ import annotations

import platform
import sys
from importlib import metadata
from typing import TYPE_CHECKING

from boxwrap.cli import exit_codes
from boxwrap.cli.console import get_rich_console
from boxwrap.core.models import UIMode
from boxwrap.exceptions import EnvironmentError
from boxwrap.infra.dependencies import PLUGINS_GROUP
from boxwrap.infra.runtime import is_bootstrapped
from boxwrap.version import __version__

if TYPE_CHECKING:
    from boxwrap.cli.environment import Environment

Check = tuple[str, str, str]

OK = "OK"
WARN = "WARN"
FAIL = "FAIL"

_STATUS_STYLE: dict[str, str] = {OK: "green", WARN: "yellow", FAIL: "red"}


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _boxwrap_version_check() -> Check:
    return "boxwrap", __version__, OK


def _python_version_check() -> Check:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    major, minor = sys.version_info[:2]
    ok = (major, minor) >= (3, 10)
    return "Python", version, OK if ok else f"{FAIL} (>=3.10 required)"


def _distribution_check(label: str, distribution: str, *, required: bool = True) -> Check:
    """Return (label, value, status) for an installed distribution."""
    try:
        version = metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return label, "NOT INSTALLED", FAIL if required else WARN
    return label, version, OK


def _runtime_check(environment: Environment) -> Check:
    if is_bootstrapped(environment.env):
        return "Runtime", "prepared", OK
    return "Runtime", "not prepared", WARN


def _plugins_check(environment: Environment) -> Check:
    dependencies = environment.dependencies
    if PLUGINS_GROUP not in dependencies.groups:
        return "Plugins", "disabled", WARN
    names = ", ".join(f"{p.name} {p.version}" for p in dependencies.plugins)
    return "Plugins", names or "none installed", OK


def collect_checks(environment: Environment) -> list[Check]:
    return [
        _boxwrap_version_check(),
        _python_version_check(),
        # Rich is optional for everything but colored output.
        _distribution_check("rich", "rich", required=False),
        _distribution_check("packaging", "packaging"),
        _runtime_check(environment),
        _plugins_check(environment),
    ]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _render_table(checks: list[Check]) -> bool:
    """Render with a Rich table; return ``False`` when Rich is missing."""
    try:
        from rich.table import Table

        console = get_rich_console(stderr=False)
    except (ModuleNotFoundError, EnvironmentError):
        return False

    table = Table(
        title="boxwrap doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)

    for label, value, status in checks:
        style = _STATUS_STYLE.get(status.split(" ", 1)[0], "")
        table.add_row(label, value, f"[{style}]{status}[/{style}]" if style else status)

    console.print()
    console.print(table)
    console.print()
    return True


def _render_plain(environment: Environment, checks: list[Check]) -> None:
    ui = environment.ui
    ui.info("boxwrap doctor")
    ui.info("=" * 56)
    ui.info(f"{'Component':<12} {'Value':<32} {'Status':<8}")
    ui.info("-" * 56)
    for label, value, status in checks:
        ui.info(f"{label:<12} {value:<32} {status:<8}")


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(environment: Environment) -> int:
    """Execute all diagnostic checks and render them through the active UI.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check failed, otherwise
        :data:`exit_codes.GENERAL_ERROR`.
    """
    checks = collect_checks(environment)
    has_failure = any(status.startswith(FAIL) for _, _, status in checks)
    ui = environment.ui

    if ui.mode is UIMode.MACHINE_READABLE:
        for label, value, status in checks:
            ui.machine("doctor-check", label, value, status)
    elif ui.mode is not UIMode.COLORED or not _render_table(checks):
        _render_plain(environment, checks)

    if has_failure:
        ui.error("Some checks failed.")
        return exit_codes.GENERAL_ERROR

    ui.success("All checks passed.")
    return exit_codes.SUCCESS
