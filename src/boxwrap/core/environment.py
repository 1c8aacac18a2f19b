"""Explicit process configuration threaded through the bootstrap stages.

:class:`RuntimeEnv` replaces direct reads and writes of ``os.environ``.
It is seeded from a real environment mapping at the process boundary,
mutated in place by successive stages, and mirrored back with
:meth:`RuntimeEnv.export` so a re-exec'd child sees the same variables.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path

# ---------------------------------------------------------------------------
# Variable names
# ---------------------------------------------------------------------------

INTERNAL_BOOTSTRAPPED = "BOXWRAP_INTERNAL_BOOTSTRAPPED"
NO_PLUGINS = "BOXWRAP_NO_PLUGINS"
PROJECT_FILE = "BOXWRAP_BOXFILE"
LOG = "BOXWRAP_LOG"
NO_COLOR = "BOXWRAP_NO_COLOR"
FORCE_COLOR = "BOXWRAP_FORCE_COLOR"
IN_INSTALLER = "BOXWRAP_INSTALLER_ENV"
VERY_QUIET = "BOXWRAP_I_KNOW_WHAT_IM_DOING_PLEASE_BE_QUIET"
EXPERIMENTAL = "BOXWRAP_EXPERIMENTAL"
HOME = "BOXWRAP_HOME"

DEFAULT_HOME = "~/.boxwrap.d"
ALL_EXPERIMENTAL_FEATURES = "*"


@dataclass
class RuntimeEnv:
    """Mutable view of the process environment used during bootstrap."""

    values: dict[str, str] = field(default_factory=dict)
    _changed: set[str] = field(default_factory=set, repr=False)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> RuntimeEnv:
        return cls(values=dict(environ))

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.values.get(name, default)

    def is_set(self, name: str) -> bool:
        """Return ``True`` when *name* is present with a non-empty value."""
        return bool(self.values.get(name))

    def set(self, name: str, value: str) -> None:
        self.values[name] = value
        self._changed.add(name)

    def export(self, target: MutableMapping[str, str]) -> None:
        """Write every variable changed since seeding into *target*."""
        for name in sorted(self._changed):
            target[name] = self.values[name]

    def experimental_features(self) -> tuple[str, ...] | None:
        """Parse ``BOXWRAP_EXPERIMENTAL``.

        ``None`` when disabled (unset or ``0``), ``("*",)`` for ``1``,
        otherwise the comma-separated feature names.
        """
        value = (self.values.get(EXPERIMENTAL) or "").strip()
        if not value or value == "0":
            return None
        if value == "1":
            return (ALL_EXPERIMENTAL_FEATURES,)
        features = tuple(part.strip() for part in value.split(",") if part.strip())
        return features or None

    @property
    def home(self) -> Path:
        """User data directory holding the plugin registry and installs."""
        return Path(self.values.get(HOME) or DEFAULT_HOME).expanduser()

    @property
    def plugin_registry_path(self) -> Path:
        return self.home / "plugins.json"

    @property
    def plugin_install_path(self) -> Path:
        return self.home / "plugins"
