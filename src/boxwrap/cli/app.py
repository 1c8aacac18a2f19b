"""CLI application entry point and bootstrap pipeline for boxwrap.

This module is the **sole error boundary** for the entire application.
:func:`main` runs the bootstrap stages in order:

1. split native and pass-through arguments;
2. version fast path, then mode-sensitive environment injection;
3. re-exec guard (may replace the process), then ``--debug`` and logging;
4. dependency activation;
5. UI mode selection;
6. dispatch;
7. failure translation.

Architecture notes
------------------
* Failures that are not :class:`~boxwrap.exceptions.BoxwrapError` are
  re-raised untouched; this boundary only formats what it can classify.
* The dispatcher, once constructed, is torn down exactly once on every
  exit path.
* This module is the only place that translates between the domain world
  and the OS process exit code, apart from the version fast path and the
  dependency version conflict in :mod:`boxwrap.cli.bootstrap`.
"""

from __future__ import annotations

import logging
import os
import sys
import traceback
from collections.abc import MutableMapping, Sequence
from typing import TYPE_CHECKING

from boxwrap.cli import exit_codes
from boxwrap.cli.bootstrap import activate_or_exit, print_version, show_startup_advisories
from boxwrap.cli.console import console
from boxwrap.cli.environment import Environment
from boxwrap.cli.interrupts import install_early_interrupt_trap
from boxwrap.core import environment
from boxwrap.core.arguments import apply_debug_flag, inject_mode_env, split_arguments, wants_version
from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.failure import classify_failure, exit_code_for
from boxwrap.core.models import BootstrapOptions, FailureKind, FailureRecord, SplitArguments
from boxwrap.core.protocols import CommandDispatcher
from boxwrap.core.ui_mode import select_ui_mode
from boxwrap.exceptions import BoxwrapError
from boxwrap.infra.runtime import ensure_bootstrapped, replace_process
from boxwrap.infra.terminal import SystemTerminalProbe
from boxwrap.utils.log import configure_logging

if TYPE_CHECKING:
    from boxwrap.infra.dependencies import ActivatedDependencies

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Process-level setup
# ---------------------------------------------------------------------------

def unbuffer_streams() -> None:
    """Make stdout and stderr write through so their output stays ordered."""
    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(line_buffering=True, write_through=True)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: Sequence[str] | None = None,
    *,
    environ: MutableMapping[str, str] | None = None,
) -> int:
    """Run the boxwrap bootstrap pipeline.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.
    environ:
        Process environment to seed from and mirror into.  Defaults to
        ``os.environ``; tests pass a plain dict.

    Returns
    -------
    int
        OS process exit code.
    """
    environ = os.environ if environ is None else environ
    raw = list(sys.argv[1:] if argv is None else argv)
    env = RuntimeEnv.from_environ(environ)

    split = split_arguments(raw)
    native = list(split.native)

    if wants_version(native):
        print_version()
        return exit_codes.SUCCESS

    inject_mode_env(native, env)
    ensure_bootstrapped(env, raw, environ, replace=replace_process)

    apply_debug_flag(native, env)
    env.export(environ)
    configure_logging(env.get(environment.LOG))
    logger.info("`boxwrap` invoked: %s", raw)

    return run(native, split.passthrough, env)


def create_dispatcher(
    options: BootstrapOptions,
    env: RuntimeEnv,
    dependencies: ActivatedDependencies,
) -> CommandDispatcher:
    logger.debug("Creating boxwrap environment")
    return Environment(options, env, dependencies)


def run(native: list[str], passthrough: Sequence[str], env: RuntimeEnv) -> int:
    """Activate dependencies, pick the UI and dispatch inside the boundary."""
    dispatcher: CommandDispatcher | None = None
    dependencies: ActivatedDependencies | None = None
    try:
        dependencies = activate_or_exit(env)

        probe = SystemTerminalProbe(env.values)
        options = BootstrapOptions(
            ui_mode=select_ui_mode(native, env, probe),
            project_file=env.get(environment.PROJECT_FILE),
        )
        args = SplitArguments(tuple(native), tuple(passthrough)).rejoin()

        dispatcher = create_dispatcher(options, env, dependencies)
        try:
            show_startup_advisories(env, dispatcher.ui)
            return dispatcher.run(args)
        finally:
            dispatcher.teardown()
    except Exception as exc:
        record = classify_failure(exc, dispatcher_ready=dispatcher is not None)
        if record.kind is FailureKind.UNCLASSIFIED:
            raise
        return report_failure(record, dispatcher)
    finally:
        if dispatcher is None and dependencies is not None:
            dependencies.deinit()


# ---------------------------------------------------------------------------
# Failure translation
# ---------------------------------------------------------------------------

def report_failure(record: FailureRecord, dispatcher: CommandDispatcher | None) -> int:
    """Log, render and map a classified failure to its exit code."""
    cause = record.cause
    logger.error("boxwrap experienced an error! Details:")
    logger.error("%s: %s", record.error_class, record.message)
    logger.error("%s", "".join(traceback.format_exception(cause)).rstrip())

    hint = cause.hint if isinstance(cause, BoxwrapError) else None
    if record.kind is FailureKind.DOMAIN_ERROR and dispatcher is not None:
        ui = dispatcher.ui
        if record.message:
            ui.error(record.message)
        if hint:
            ui.warn(f"Hint: {hint}")
        ui.error_exit(record.error_class, record.message)
    else:
        print("boxwrap failed to initialize at a very early stage:\n", file=sys.stderr)
        print(record.message, file=sys.stderr)
        if hint:
            print(f"Hint: {hint}", file=sys.stderr)
        sys.stderr.flush()

    return exit_code_for(record)


# ---------------------------------------------------------------------------
# Script-level entry
# ---------------------------------------------------------------------------

def cli(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point.

    Sets up the early interrupt trap and unbuffered streams, runs
    :func:`main` and exits with its status.  A ``KeyboardInterrupt`` that
    arrives after the dispatcher installed its interrupt policy ends the
    process with status 130.
    """
    install_early_interrupt_trap()
    unbuffer_streams()
    try:
        code = main(argv)
    except KeyboardInterrupt:
        console.print("\nAborted by user.")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    sys.exit(code)
