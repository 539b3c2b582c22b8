# File: ormgen/__main__.py
"""
ormgen — Module entry point.

Allows running the generator directly via::

    python -m ormgen --schema schema.yaml --config ormgen.yaml --output ./out
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from ormgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
