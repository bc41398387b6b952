# File: zodgen/__main__.py
"""
zodgen — Module entry point.

Allows running the generator directly via::

    python -m zodgen --schema datamodel.yaml --output ./src/generated
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from zodgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
