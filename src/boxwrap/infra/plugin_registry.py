"""Infrastructure: the user plugin registry (``plugins.json``).

File layout::

    {
      "version": "1",
      "installed": {
        "boxwrap-aws": {"version_constraint": ">=0.5", "installed_version": "0.5.2"}
      }
    }

A missing file means no plugins.  Anything unparseable raises
:class:`~boxwrap.exceptions.PluginRegistryError`.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any

from boxwrap.core.models import PluginSpec
from boxwrap.exceptions import PluginRegistryError

logger = logging.getLogger(__name__)

REGISTRY_VERSION = "1"


def load_registry(path: Path) -> tuple[PluginSpec, ...]:
    """Return the plugins recorded in *path*, in file order."""
    if not path.exists():
        return ()

    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PluginRegistryError(
            f"The plugin registry at {path} could not be read.",
            hint=f"Remove {path} and reinstall your plugins.",
        ) from exc

    installed = raw.get("installed") if isinstance(raw, dict) else None
    if not isinstance(installed, dict):
        raise PluginRegistryError(
            f"The plugin registry at {path} has no 'installed' table.",
            hint=f"Remove {path} and reinstall your plugins.",
        )

    specs: list[PluginSpec] = []
    for name, entry in installed.items():
        entry = entry if isinstance(entry, dict) else {}
        installed_version = entry.get("installed_version")
        specs.append(
            PluginSpec(
                name=name,
                version_constraint=str(entry.get("version_constraint") or ""),
                installed_version=None if installed_version is None else str(installed_version),
            )
        )
    return tuple(specs)


def expunge(registry_path: Path, install_path: Path) -> tuple[str, ...]:
    """Delete the registry file and the plugin install directory.

    Returns the names of the plugins that were registered.
    """
    try:
        names = tuple(spec.name for spec in load_registry(registry_path))
    except PluginRegistryError as exc:
        logger.warning("Expunging unreadable plugin registry: %s", exc)
        names = ()

    if registry_path.exists():
        registry_path.unlink()
        logger.info("Removed plugin registry %s", registry_path)
    if install_path.exists():
        shutil.rmtree(install_path)
        logger.info("Removed plugin install directory %s", install_path)
    return names
