"""Infrastructure: the runtime re-exec guard.

The bootstrap must run inside the prepared dependency runtime set up by
:mod:`boxwrap.prepare`.  When the sentinel variable is missing, the
current process image is replaced by one that runs the preparation
module with the original arguments.

Rules
-----
* Arguments are forwarded unmodified; the child redoes every stage.
* State reaches the child only through environment variables.
* A replacement primitive that returns is a fatal consistency error.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Callable, MutableMapping, Sequence

from boxwrap.core import environment
from boxwrap.core.environment import RuntimeEnv

logger = logging.getLogger(__name__)

PREPARE_MODULE = "boxwrap.prepare"

ProcessReplacer = Callable[[list[str], MutableMapping[str, str]], None]


def resolve_interpreter() -> str:
    """Return the path of the running Python interpreter."""
    if not sys.executable:
        raise RuntimeError("Unable to locate the Python interpreter for re-exec.")
    return sys.executable


def build_reexec_argv(raw_argv: Sequence[str], interpreter: str | None = None) -> list[str]:
    """Return the full command line of the prepared child process."""
    return [interpreter or resolve_interpreter(), "-m", PREPARE_MODULE, *raw_argv]


def replace_process(argv: list[str], environ: MutableMapping[str, str]) -> None:
    """Replace the current process with *argv*.

    Uses ``execve`` where it has real exec semantics.  On Windows the child
    is spawned and its exit status propagated, since ``exec*`` there starts
    a new process and returns to the parent's caller.
    """
    if os.name == "nt":
        completed = subprocess.run(argv, env=dict(environ), check=False)
        raise SystemExit(completed.returncode)
    os.execve(argv[0], argv, dict(environ))


def is_bootstrapped(env: RuntimeEnv) -> bool:
    return env.is_set(environment.INTERNAL_BOOTSTRAPPED)


def ensure_bootstrapped(
    env: RuntimeEnv,
    raw_argv: Sequence[str],
    environ: MutableMapping[str, str],
    *,
    replace: ProcessReplacer = replace_process,
) -> None:
    """Return only when running inside the prepared runtime.

    Otherwise mirror *env* into *environ* and replace the process.  If the
    replacement comes back, raise immediately.
    """
    if is_bootstrapped(env):
        return

    env.export(environ)
    argv = build_reexec_argv(raw_argv)
    logger.debug("Re-executing inside prepared runtime: %s", argv)
    replace(argv, environ)
    raise RuntimeError(
        "Fatal error: process replacement returned control to the bootstrap."
    )
