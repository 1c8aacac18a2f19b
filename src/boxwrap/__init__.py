"""boxwrap — bootstrap and dispatch layer for managed execution environments.

Turns raw process arguments into an initialized runtime, picks an output
mode and hands control to the command layer.
"""

from boxwrap.version import __version__

__all__: list[str] = ["__version__"]
