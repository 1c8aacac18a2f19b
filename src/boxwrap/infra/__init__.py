"""Infrastructure layer — process, filesystem and packaging integration.

This layer owns process replacement, terminal probing, the plugin
registry file and dependency activation.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Failures leave as :class:`~boxwrap.exceptions.BoxwrapError` subclasses,
  except internal consistency violations.
* :mod:`boxwrap.infra.dependencies` is not re-exported here: it needs
  ``packaging``, and this package is imported before the dependency
  runtime is confirmed.
"""

from boxwrap.infra.plugin_registry import expunge, load_registry
from boxwrap.infra.runtime import ensure_bootstrapped, replace_process
from boxwrap.infra.terminal import SystemTerminalProbe

__all__: list[str] = [
    "SystemTerminalProbe",
    "ensure_bootstrapped",
    "expunge",
    "load_registry",
    "replace_process",
]
