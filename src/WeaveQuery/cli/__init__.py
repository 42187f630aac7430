"""CLI package for WeaveQuery command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from WeaveQuery.cli.runner import CommandRunner
from WeaveQuery.cli.ui import cli


def main() -> None:
    """Run the WeaveQuery CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
