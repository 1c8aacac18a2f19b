"""Argument splitting and the early flag scan.

These functions run before the dependency runtime is active, so they
must stay pure: no optional imports, no I/O.  The only side effect is on
the :class:`~boxwrap.core.environment.RuntimeEnv` passed in.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from boxwrap.core import environment
from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.models import SENTINEL, SplitArguments

VERSION_FLAGS: frozenset[str] = frozenset({"-v", "--version"})
DEBUG_FLAG = "--debug"


def split_arguments(tokens: Sequence[str]) -> SplitArguments:
    """Split *tokens* at the first ``--``, discarding the sentinel itself."""
    tokens = tuple(tokens)
    try:
        index = tokens.index(SENTINEL)
    except ValueError:
        return SplitArguments(native=tokens)
    return SplitArguments(native=tokens[:index], passthrough=tokens[index + 1 :])


def wants_version(native: Sequence[str]) -> bool:
    """Return ``True`` when the version fast path should run."""
    return any(token in VERSION_FLAGS for token in native)


def project_file_pin(clock: Callable[[], float] = time.time) -> str:
    """Return a synthetic Boxfile name no real project can collide with."""
    return f"plugin_command_{int(clock())}"


def inject_mode_env(
    native: Sequence[str],
    env: RuntimeEnv,
    *,
    clock: Callable[[], float] = time.time,
) -> None:
    """Isolate meta-commands from plugins and ambient project configuration.

    Only the first command word is examined, and only when no flag comes
    before it.  ``box list`` is matched by literal adjacency.
    """
    for index, token in enumerate(native):
        if token.startswith("-"):
            break

        if token == "plugin":
            env.set(environment.NO_PLUGINS, "1")
            env.set(environment.PROJECT_FILE, project_file_pin(clock))

        if token == "help":
            env.set(environment.PROJECT_FILE, project_file_pin(clock))

        following = native[index + 1] if index + 1 < len(native) else None
        if token == "box" and following == "list":
            env.set(environment.PROJECT_FILE, project_file_pin(clock))

        break


def consume_flag(native: list[str], flag: str) -> bool:
    """Remove every occurrence of *flag* from *native* in place.

    Returns whether the flag was present.
    """
    if flag not in native:
        return False
    native[:] = [token for token in native if token != flag]
    return True


def apply_debug_flag(native: list[str], env: RuntimeEnv) -> bool:
    """Turn ``--debug`` into ``BOXWRAP_LOG=debug``.

    Must only run once the re-exec guard has passed, otherwise the
    change would be lost with the replaced process.
    """
    if not consume_flag(native, DEBUG_FLAG):
        return False
    env.set(environment.LOG, "debug")
    return True
