"""The command dispatcher: routes a processed argument list to a command.

:class:`Environment` satisfies
:class:`~boxwrap.core.protocols.CommandDispatcher`.  It owns the UI
picked during bootstrap and the activated dependency set, and releases
the latter on :meth:`Environment.teardown`.

Built-in commands are ``help``, ``version``, ``doctor`` and
``plugin list|expunge``.  Every other command word is looked up among the
``boxwrap.commands`` entry points loaded from plugins.
"""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING, NoReturn

from boxwrap.cli import exit_codes
from boxwrap.cli.interrupts import install_interrupt_policy
from boxwrap.cli.ui import BasicUI, build_ui
from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.models import BootstrapOptions
from boxwrap.exceptions import CommandNotFoundError, InvalidUsageError
from boxwrap.infra.plugin_registry import expunge, load_registry
from boxwrap.version import __version__

if TYPE_CHECKING:
    from boxwrap.infra.dependencies import ActivatedDependencies

logger = logging.getLogger(__name__)

HELP_WORDS: frozenset[str] = frozenset({"help", "-h", "--help"})
BUILTIN_COMMANDS: dict[str, str] = {
    "doctor": "Check the runtime, its dependencies and installed plugins",
    "help": "Show this help",
    "plugin": "Manage plugins: list, expunge --force",
    "version": "Print the boxwrap version",
}


class Environment:
    """Dispatch context for one invocation."""

    def __init__(
        self,
        options: BootstrapOptions,
        env: RuntimeEnv,
        dependencies: ActivatedDependencies,
        *,
        ui: BasicUI | None = None,
    ) -> None:
        self.options = options
        self.env = env
        self.dependencies = dependencies
        self.ui = ui if ui is not None else build_ui(options.ui_mode)
        self._torn_down = False
        logger.debug("Environment created with options %s", options)

    # ------------------------------------------------------------------
    # Dispatcher contract
    # ------------------------------------------------------------------

    def run(self, args: list[str]) -> int:
        install_interrupt_policy()
        logger.info("Dispatching: %s", args)

        if not args or args[0] in HELP_WORDS:
            self.print_help()
            return exit_codes.SUCCESS

        name, rest = args[0], args[1:]
        if name == "version":
            self.ui.info(f"boxwrap {__version__}")
            return exit_codes.SUCCESS
        if name == "doctor":
            from boxwrap.cli.doctor import run_doctor

            return run_doctor(self)
        if name == "plugin":
            return self._plugin(rest)

        command = self.dependencies.commands.get(name)
        if command is None:
            raise CommandNotFoundError(
                f"Unknown command '{name}'.",
                hint="Run `boxwrap help` to list available commands.",
            )
        status = command(self, rest)
        return exit_codes.SUCCESS if status is None else int(status)

    def teardown(self) -> None:
        """Release the activated dependencies.  Safe to call repeatedly."""
        if self._torn_down:
            return
        self._torn_down = True
        self.dependencies.deinit()
        logger.debug("Environment torn down")

    # ------------------------------------------------------------------
    # Built-ins
    # ------------------------------------------------------------------

    def print_help(self) -> None:
        self.ui.info("Usage: boxwrap [options] <command> [<args>] [-- <passthrough>]")
        self.ui.info("")
        self.ui.info("Options: -v/--version --debug --color --no-color --machine-readable")
        self.ui.info("")
        self.ui.info("Commands:")
        for name, summary in sorted(BUILTIN_COMMANDS.items()):
            self.ui.info(f"  {name:<12} {summary}")
        for name in sorted(self.dependencies.commands):
            self.ui.info(f"  {name:<12} (plugin)")

    def _plugin(self, args: list[str]) -> int:
        options = _build_plugin_parser().parse_args(args)
        action = options.action or "list"

        if action == "list":
            specs = load_registry(self.env.plugin_registry_path)
            if not specs:
                self.ui.info("No plugins installed.")
                return exit_codes.SUCCESS
            for spec in specs:
                version = spec.installed_version or "unknown"
                constraint = f", {spec.version_constraint}" if spec.version_constraint else ""
                self.ui.info(f"{spec.name} ({version}{constraint})")
                self.ui.machine("plugin-name", spec.name, target=spec.name)
                self.ui.machine("plugin-version", version, target=spec.name)
            return exit_codes.SUCCESS

        if not options.force:
            raise InvalidUsageError(
                "`plugin expunge` removes every installed plugin.",
                hint="Re-run with `boxwrap plugin expunge --force` to confirm.",
            )
        removed = expunge(self.env.plugin_registry_path, self.env.plugin_install_path)
        self.ui.success(f"Removed {len(removed)} plugin(s).")
        return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

class _UsageErrorParser(argparse.ArgumentParser):
    """Argument parser that raises instead of printing and exiting."""

    def error(self, message: str) -> NoReturn:
        raise InvalidUsageError(
            f"{self.prog}: {message}",
            hint="Available: list, expunge --force.",
        )


def _build_plugin_parser() -> argparse.ArgumentParser:
    """Construct the parser for ``boxwrap plugin``.

    * ``boxwrap plugin [list]``          — show registered plugins
    * ``boxwrap plugin expunge --force`` — remove every plugin
    """
    parser = _UsageErrorParser(prog="boxwrap plugin", add_help=False)
    actions = parser.add_subparsers(dest="action")
    actions.add_parser("list", add_help=False)
    expunge_parser = actions.add_parser("expunge", add_help=False)
    expunge_parser.add_argument(
        "--force",
        action="store_true",
        help="Confirm removal of the plugin registry and install directory.",
    )
    return parser
