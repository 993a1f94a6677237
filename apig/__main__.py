# File: apig/__main__.py
"""
apig - Module entry point.

Allows running the generator directly via::

    python -m apig gen -f models.yaml -o ./api-server

This module simply delegates to the CLI entry point defined in ``apig.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from apig.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
