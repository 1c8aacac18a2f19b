"""Domain models for the boxwrap bootstrap pipeline.

Everything here lives for the duration of one process.  Value objects are
frozen dataclasses; :class:`BootstrapOptions` is the one mutable struct,
filled in stage by stage and handed to the dispatcher once.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

SENTINEL: str = "--"
"""Separates native arguments from pass-through arguments."""


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SplitArguments:
    """Native arguments and the pass-through tail found after ``--``."""

    native: tuple[str, ...]
    """Tokens before the first sentinel; these are inspected by bootstrap."""

    passthrough: tuple[str, ...] = ()
    """Tokens after the first sentinel, never inspected."""

    def rejoin(self) -> list[str]:
        """Return the argument list handed to the dispatcher.

        The sentinel is re-inserted only when there is something behind it.
        """
        if not self.passthrough:
            return list(self.native)
        return [*self.native, SENTINEL, *self.passthrough]


# ---------------------------------------------------------------------------
# UI selection
# ---------------------------------------------------------------------------

class UIMode(enum.Enum):
    """Output strategy picked once per process."""

    COLORED = "colored"
    BASIC = "basic"
    MACHINE_READABLE = "machine-readable"


@dataclass(slots=True)
class BootstrapOptions:
    """Options assembled during bootstrap and consumed by the dispatcher."""

    ui_mode: UIMode = UIMode.COLORED
    project_file: str | None = None


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class FailureKind(enum.Enum):
    DOMAIN_ERROR = "domain-error"
    PRE_INIT_ERROR = "pre-init-error"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """Classification of a failure that reached the top-level boundary.

    ``UNCLASSIFIED`` records are never rendered; the boundary re-raises
    ``cause`` unchanged.
    """

    kind: FailureKind
    message: str
    cause: BaseException
    status_code: int | None = None

    @property
    def error_class(self) -> str:
        return type(self.cause).__name__


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PluginSpec:
    """One entry of the plugin registry file."""

    name: str
    version_constraint: str = ""
    installed_version: str | None = None


@dataclass(frozen=True, slots=True)
class LoadedPlugin:
    """A plugin distribution that passed activation."""

    name: str
    version: str
    commands: tuple[str, ...] = field(default_factory=tuple)
