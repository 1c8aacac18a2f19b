"""Bootstrap stages that talk to the user before a UI exists.

* The version fast path.
* Dependency activation with local recovery: a missing plugin degrades
  to running without plugins, a version conflict ends the process with
  status 1.
* Startup advisories shown once the dispatcher's UI is available.

These are the only places below the error boundary allowed to end the
process themselves.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from boxwrap.cli import exit_codes
from boxwrap.core import environment
from boxwrap.core.environment import ALL_EXPERIMENTAL_FEATURES, RuntimeEnv
from boxwrap.core.protocols import UserInterface
from boxwrap.exceptions import DependencyMissingError, DependencyVersionConflictError
from boxwrap.version import __version__

if TYPE_CHECKING:
    from boxwrap.infra.dependencies import ActivatedDependencies

logger = logging.getLogger(__name__)

MISSING_DEPENDENCY_MESSAGE = """\
boxwrap failed to properly initialize due to an error while
attempting to load configured plugins. This can be caused
by manually tampering with the 'plugins.json' file, or by a
recent boxwrap upgrade. To fix this problem, please remove the
following file and reinstall your plugins:

    {registry_path}

Error message given during initialization: {error}

Continuing without plugins.
"""

VERSION_CONFLICT_MESSAGE = """\
boxwrap experienced a version conflict with some installed plugins!
This usually happens if you recently upgraded boxwrap. As part of the
upgrade process, some existing plugins are no longer compatible with
this version of boxwrap. The recommended way to fix this is to remove
your existing plugins and reinstall them one-by-one. To remove all
plugins:

    boxwrap plugin expunge --force

Note if you have an alias or script that runs boxwrap, the command
above must be run with that same alias or script.

Error message given during initialization: {error}
"""

NOT_IN_INSTALLER_MESSAGE = """\
You appear to be running boxwrap outside of the official installers.
Note that the installers are what ensure that boxwrap has all required
dependencies, and boxwrap assumes that these dependencies exist. By
running outside of the installer environment, boxwrap may not function
properly. To remove this warning, install boxwrap using one of the
official packages."""


# ---------------------------------------------------------------------------
# Version fast path
# ---------------------------------------------------------------------------

def print_version() -> None:
    print(f"boxwrap {__version__}", flush=True)


# ---------------------------------------------------------------------------
# Dependency activation
# ---------------------------------------------------------------------------

def requested_groups(env: RuntimeEnv) -> tuple[str, ...]:
    from boxwrap.infra.dependencies import DEFAULT_GROUP, PLUGINS_GROUP

    if env.is_set(environment.NO_PLUGINS):
        return (DEFAULT_GROUP,)
    return (DEFAULT_GROUP, PLUGINS_GROUP)


def activate_or_exit(env: RuntimeEnv) -> ActivatedDependencies:
    """Activate the dependency groups, recovering or exiting as needed.

    Raises
    ------
    SystemExit
        With :data:`exit_codes.DEPENDENCY_CONFLICT` on a version conflict.
    """
    from boxwrap.infra.dependencies import DEFAULT_GROUP, activate_dependencies

    groups = requested_groups(env)
    try:
        return activate_dependencies(env, groups)
    except DependencyVersionConflictError as exc:
        logger.error("Dependency version conflict: %s", exc)
        print(VERSION_CONFLICT_MESSAGE.format(error=exc), file=sys.stderr, flush=True)
        raise SystemExit(exit_codes.DEPENDENCY_CONFLICT) from exc
    except DependencyMissingError as exc:
        if exc.group == DEFAULT_GROUP:
            raise
        logger.warning("Plugin dependency missing, continuing without plugins: %s", exc)
        print(
            MISSING_DEPENDENCY_MESSAGE.format(
                registry_path=env.plugin_registry_path,
                error=exc,
            ),
            file=sys.stderr,
            flush=True,
        )

    return activate_dependencies(env, (DEFAULT_GROUP,))


# ---------------------------------------------------------------------------
# Advisories
# ---------------------------------------------------------------------------

def show_startup_advisories(env: RuntimeEnv, ui: UserInterface) -> None:
    if not env.is_set(environment.IN_INSTALLER) and not env.is_set(environment.VERY_QUIET):
        ui.warn(NOT_IN_INSTALLER_MESSAGE)

    features = env.experimental_features()
    if features is None:
        return

    logger.debug("Experimental flag is enabled: %s", features)
    if features == (ALL_EXPERIMENTAL_FEATURES,):
        ui.warn(
            "You have enabled the experimental flag with all features enabled. "
            "Please use with caution, as some of the features may not be fully "
            "functional yet."
        )
    else:
        ui.warn(
            "You have requested to enable the experimental flag with the following "
            f"features: {', '.join(features)}. Please use with caution, as some of "
            "the features may not be fully functional yet."
        )
