"""Custom exception hierarchy for boxwrap.

Every failure the tool knows how to explain must inherit from
:class:`BoxwrapError`.  The top-level error boundary in
:mod:`boxwrap.cli.app` renders these and turns them into exit codes;
anything else is re-raised untouched.

Hierarchy
---------
BoxwrapError
├── InvalidUsageError
│   └── CommandNotFoundError
├── PluginRegistryError
├── EnvironmentError
└── DependencyError
    ├── DependencyMissingError
    └── DependencyVersionConflictError
"""

from __future__ import annotations


class BoxwrapError(Exception):
    """Base exception for all boxwrap errors.

    ``status_code`` is the process exit code this error maps to.  Subclasses
    may declare it at class level; callers may override it per instance.
    ``None`` means "no declared code" and the boundary falls back to 255.
    """

    status_code: int | None = None

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


# --- Command routing -------------------------------------------------------

class InvalidUsageError(BoxwrapError):
    """Raised when a command is invoked with arguments it does not accept."""

    status_code = 1


class CommandNotFoundError(InvalidUsageError):
    """Raised when the command word matches no built-in or plugin command."""


# --- Plugins ---------------------------------------------------------------

class PluginRegistryError(BoxwrapError):
    """Raised when the plugin registry file cannot be read or parsed."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(BoxwrapError):
    """Raised when an optional runtime package is not available."""


# --- Dependency activation -------------------------------------------------

class DependencyError(BoxwrapError):
    """Base for failures while activating a dependency group."""

    def __init__(self, message: str, *, group: str, name: str) -> None:
        super().__init__(message)
        self.group: str = group
        self.name: str = name


class DependencyMissingError(DependencyError):
    """A required distribution, or a plugin entry point, cannot be resolved."""


class DependencyVersionConflictError(DependencyError):
    """An installed distribution does not satisfy a declared version specifier."""
