"""Preparation entry point for the re-exec'd process.

The re-exec guard runs ``python -m boxwrap.prepare <args>``.  This module
isolates the interpreter from per-user site-packages, so the tool only
sees its own install and the plugin directory added later, marks the
runtime as prepared and hands the untouched arguments back to the CLI.
"""

from __future__ import annotations

import os
import site
import sys
from collections.abc import MutableMapping

from boxwrap.cli.interrupts import install_early_interrupt_trap
from boxwrap.core import environment


def prepare(environ: MutableMapping[str, str]) -> None:
    """Mark the runtime as prepared and drop user site-packages."""
    user_site = site.getusersitepackages()
    sys.path[:] = [entry for entry in sys.path if entry != user_site]
    environ["PYTHONNOUSERSITE"] = "1"
    environ[environment.INTERNAL_BOOTSTRAPPED] = "1"


def run() -> None:
    install_early_interrupt_trap()
    prepare(os.environ)

    from boxwrap.cli.app import cli

    cli(sys.argv[1:])


if __name__ == "__main__":
    run()
