"""Single source of truth for the boxwrap version string."""

__version__: str = "2.4.1"
