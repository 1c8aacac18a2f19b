"""Core layer — pure bootstrap decisions.

Rules
-----
* No ``print()`` calls.
* No filesystem or network I/O.
* No imports from ``cli`` or ``infra``.
* No optional third-party imports: this layer runs before the dependency
  runtime is active.
"""

from boxwrap.core.arguments import split_arguments
from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.failure import classify_failure, exit_code_for
from boxwrap.core.models import (
    BootstrapOptions,
    FailureKind,
    FailureRecord,
    SplitArguments,
    UIMode,
)
from boxwrap.core.protocols import CommandDispatcher, TerminalProbe, UserInterface
from boxwrap.core.ui_mode import select_ui_mode

__all__: list[str] = [
    "BootstrapOptions",
    "CommandDispatcher",
    "FailureKind",
    "FailureRecord",
    "RuntimeEnv",
    "SplitArguments",
    "TerminalProbe",
    "UIMode",
    "UserInterface",
    "classify_failure",
    "exit_code_for",
    "select_ui_mode",
    "split_arguments",
]
