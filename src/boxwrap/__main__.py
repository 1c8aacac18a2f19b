"""Allow ``python -m boxwrap`` invocation.

Also the target of the ``boxwrap`` console script.  The early SIGINT
trap goes in before the CLI and its dependencies are imported, so an
interrupt during start-up exits at once.
"""

from __future__ import annotations

from boxwrap.cli.interrupts import install_early_interrupt_trap


def main() -> None:
    install_early_interrupt_trap()

    from boxwrap.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
