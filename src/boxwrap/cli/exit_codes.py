"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — command completed, or the version fast path printed."""

GENERAL_ERROR: int = 1
"""A built-in command ran to completion but reported failure."""

DEPENDENCY_CONFLICT: int = 1
"""Installed plugins conflict with the active dependency versions."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""

UNDECLARED_ERROR: int = 255
"""A BoxwrapError was caught that declares no status code of its own."""
