"""Protocols (interfaces) consumed by the core layer.

These define the contracts that the CLI and infrastructure layers must
satisfy.  Core code depends ONLY on these protocols — never on concrete
implementations.
"""

from __future__ import annotations

from typing import Protocol


class TerminalProbe(Protocol):
    """Facts about the attached terminal used by UI selection."""

    def supports_color(self) -> bool:
        """Return whether the terminal can render ANSI colors at all."""
        ...  # pragma: no cover

    def stdout_isatty(self) -> bool:
        ...  # pragma: no cover

    def is_cygwin(self) -> bool:
        """Return whether we run under a Cygwin/MSYS terminal layer.

        Those report a non-TTY stdout even when a user is watching.
        """
        ...  # pragma: no cover


class UserInterface(Protocol):
    """Output strategy used by the dispatcher and the error boundary."""

    def info(self, message: str) -> None:
        ...  # pragma: no cover

    def success(self, message: str) -> None:
        ...  # pragma: no cover

    def warn(self, message: str) -> None:
        ...  # pragma: no cover

    def error(self, message: str) -> None:
        ...  # pragma: no cover

    def machine(self, type_: str, *data: str, target: str = "") -> None:
        """Emit one structured record for tooling integrations."""
        ...  # pragma: no cover

    def error_exit(self, error_class: str, message: str) -> None:
        """Emit the ``error-exit`` record on the output channel in every mode."""
        ...  # pragma: no cover


class CommandDispatcher(Protocol):
    """Contract for the object that executes the requested command.

    The bootstrap calls :meth:`teardown` exactly once, after :meth:`run`
    returns or raises; implementations must still tolerate repeat calls.
    """

    ui: UserInterface

    def run(self, args: list[str]) -> int:
        """Run the command described by *args* and return its exit status."""
        ...  # pragma: no cover

    def teardown(self) -> None:
        ...  # pragma: no cover
