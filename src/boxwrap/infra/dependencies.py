"""Infrastructure: activation of the ``default`` and ``plugins`` dependency groups.

``default`` is the set of requirements declared by the installed
``boxwrap`` distribution.  ``plugins`` is every distribution recorded in
the plugin registry, made importable from the plugin install directory,
checked against its recorded constraint and its own requirements, and
mined for ``boxwrap.commands`` entry points.

Two failure kinds leave this module, both subclasses of
:class:`~boxwrap.exceptions.DependencyError`:

* :class:`~boxwrap.exceptions.DependencyMissingError` — something is not
  installed or cannot be imported;
* :class:`~boxwrap.exceptions.DependencyVersionConflictError` — something
  is installed at a version outside a declared specifier.

A failed activation undoes its ``sys.path`` changes before raising.
Deciding whether a failure is fatal is up to the caller.
"""

from __future__ import annotations

import importlib
import logging
import site
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from importlib import metadata
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.utils import canonicalize_name

from boxwrap.core.environment import RuntimeEnv
from boxwrap.core.models import LoadedPlugin, PluginSpec
from boxwrap.exceptions import DependencyMissingError, DependencyVersionConflictError
from boxwrap.infra.plugin_registry import load_registry
from boxwrap.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "default"
PLUGINS_GROUP = "plugins"
DISTRIBUTION = "boxwrap"
COMMAND_ENTRY_POINT_GROUP = "boxwrap.commands"

PluginCommand = Callable[..., Any]


@dataclass
class ActivatedDependencies:
    """Result of a successful activation."""

    groups: tuple[str, ...]
    plugins: tuple[LoadedPlugin, ...] = ()
    commands: dict[str, PluginCommand] = field(default_factory=dict)
    added_paths: list[str] = field(default_factory=list)

    def deinit(self) -> None:
        """Remove the import paths this activation added.  Idempotent."""
        for entry in self.added_paths:
            while entry in sys.path:
                sys.path.remove(entry)
        self.added_paths.clear()


def activate_dependencies(env: RuntimeEnv, groups: Iterable[str]) -> ActivatedDependencies:
    """Activate *groups* for the current process."""
    activated = ActivatedDependencies(groups=tuple(groups))
    try:
        if DEFAULT_GROUP in activated.groups:
            _activate_default()
        if PLUGINS_GROUP in activated.groups:
            _activate_plugins(env, activated)
    except Exception:
        activated.deinit()
        raise

    logger.info(
        "Activated dependency groups %s with %d plugin(s)",
        ", ".join(activated.groups),
        len(activated.plugins),
    )
    return activated


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

def _activate_default() -> None:
    try:
        requirements = metadata.requires(DISTRIBUTION) or []
    except metadata.PackageNotFoundError:
        logger.debug("%s is not installed as a distribution; default group unchecked", DISTRIBUTION)
        return

    for requirement in requirements:
        check_requirement(requirement, group=DEFAULT_GROUP, owner=DISTRIBUTION)


def _activate_plugins(env: RuntimeEnv, activated: ActivatedDependencies) -> None:
    specs = load_registry(env.plugin_registry_path)
    if not specs:
        return

    install_path = env.plugin_install_path
    if install_path.is_dir():
        before = set(sys.path)
        site.addsitedir(str(install_path))
        activated.added_paths.extend(entry for entry in sys.path if entry not in before)
        importlib.invalidate_caches()

    plugins: list[LoadedPlugin] = []
    for spec in specs:
        plugins.append(_load_plugin(spec, activated))
    activated.plugins = tuple(plugins)


def _load_plugin(spec: PluginSpec, activated: ActivatedDependencies) -> LoadedPlugin:
    try:
        dist = metadata.distribution(spec.name)
    except metadata.PackageNotFoundError as exc:
        raise DependencyMissingError(
            f"Plugin '{spec.name}' is registered but not installed.",
            group=PLUGINS_GROUP,
            name=spec.name,
        ) from exc

    version = dist.version
    if spec.version_constraint and not _satisfies(
        spec.version_constraint, version, group=PLUGINS_GROUP, name=spec.name
    ):
        raise DependencyVersionConflictError(
            f"Plugin '{spec.name}' {version} does not satisfy the registered "
            f"constraint '{spec.version_constraint}'.",
            group=PLUGINS_GROUP,
            name=spec.name,
        )

    for requirement in dist.requires or []:
        check_requirement(requirement, group=PLUGINS_GROUP, owner=spec.name)

    commands: list[str] = []
    for entry_point in dist.entry_points:
        if entry_point.group != COMMAND_ENTRY_POINT_GROUP:
            continue
        try:
            activated.commands[entry_point.name] = entry_point.load()
        except ImportError as exc:
            raise DependencyMissingError(
                f"Plugin '{spec.name}' command '{entry_point.name}' failed to import: {exc}",
                group=PLUGINS_GROUP,
                name=spec.name,
            ) from exc
        commands.append(entry_point.name)

    logger.debug("Loaded plugin %s %s with commands %s", spec.name, version, commands)
    return LoadedPlugin(name=spec.name, version=version, commands=tuple(commands))


# ---------------------------------------------------------------------------
# Requirement checks
# ---------------------------------------------------------------------------

def check_requirement(requirement: str, *, group: str, owner: str) -> None:
    """Verify one PEP 508 *requirement* declared by *owner*.

    Requirements gated behind an extra, or a marker that does not match
    this interpreter, are skipped.
    """
    try:
        parsed = Requirement(requirement)
    except InvalidRequirement as exc:
        raise DependencyVersionConflictError(
            f"{owner} declares an invalid requirement '{requirement}': {exc}",
            group=group,
            name=owner,
        ) from exc

    if parsed.marker is not None and not parsed.marker.evaluate({"extra": ""}):
        return

    installed = installed_version(parsed.name)
    if installed is None:
        raise DependencyMissingError(
            f"{owner} requires '{parsed}', which is not installed.",
            group=group,
            name=parsed.name,
        )

    if parsed.specifier and not parsed.specifier.contains(installed, prereleases=True):
        raise DependencyVersionConflictError(
            f"{owner} requires '{parsed}', but {parsed.name} {installed} is installed.",
            group=group,
            name=parsed.name,
        )


def installed_version(name: str) -> str | None:
    """Return the installed version of distribution *name*, if any."""
    if canonicalize_name(name) == DISTRIBUTION:
        return __version__
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def _satisfies(constraint: str, version: str, *, group: str, name: str) -> bool:
    try:
        return SpecifierSet(constraint).contains(version, prereleases=True)
    except InvalidSpecifier as exc:
        raise DependencyVersionConflictError(
            f"Plugin '{name}' has an invalid version constraint '{constraint}': {exc}",
            group=group,
            name=name,
        ) from exc
