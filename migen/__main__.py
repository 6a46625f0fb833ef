# File: migen/__main__.py
"""
Migen — Module entry point.

Allows running the generator directly via::

    python -m migen --schema schema.yaml --output ./migrations

This module simply delegates to the CLI entry point defined in ``migen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from migen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
