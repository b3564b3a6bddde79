"""linktips.cli - Typer command line; see :mod:`linktips.cli.main`."""

from .main import app, main

__all__ = ["app", "main"]
