"""
cli — command-line interface for dualstore.

Entry points
────────────
  python -m src.cli   (via src/cli/__main__.py)
  dualstore           (via pyproject.toml [project.scripts])

Subcommands: types | dump
"""

from src.cli.main import build_parser, cmd_dump, cmd_types, main

__all__ = ["build_parser", "cmd_types", "cmd_dump", "main"]
