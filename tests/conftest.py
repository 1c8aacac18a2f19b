"""Shared pytest fixtures and configuration for the boxwrap test suite.

Guidelines
----------
* No real process replacement: the runtime sentinel is preset, or the
  replacement primitive is mocked.
* Environment variables are passed as plain dicts, never read from or
  written to ``os.environ``.
* The user data directory always lives under ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from boxwrap.core import environment
from boxwrap.core.environment import RuntimeEnv
from boxwrap.utils.log import configure_logging


@pytest.fixture
def boxwrap_home(tmp_path: Path) -> Path:
    home = tmp_path / "boxwrap.d"
    home.mkdir()
    return home


@pytest.fixture
def environ(boxwrap_home: Path) -> dict[str, str]:
    """A prepared-runtime environment with the installer advisory silenced."""
    return {
        environment.INTERNAL_BOOTSTRAPPED: "1",
        environment.HOME: str(boxwrap_home),
        environment.IN_INSTALLER: "1",
    }


@pytest.fixture
def runtime_env(environ: dict[str, str]) -> RuntimeEnv:
    return RuntimeEnv.from_environ(environ)


@pytest.fixture(autouse=True)
def _reset_boxwrap_logging() -> Iterator[None]:
    yield
    configure_logging(None)
