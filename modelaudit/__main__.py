"""
modelaudit - Module entry point.

Allows running the auditor directly via::

    python -m modelaudit --connection sqlite:///app.db
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from modelaudit.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
