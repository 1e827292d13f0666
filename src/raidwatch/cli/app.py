# src/raidwatch/cli/app.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from .bosses_cmd import app as bosses_app
from .gyms_cmd import app as gyms_app
from .raids_cmd import app as raids_app

app = typer.Typer(help="raidwatch command line interface")


@app.callback()
def main(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(
        None,
        "--root",
        help="Workspace root (default: nearest parent with a .raidwatch/ directory).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=verbose)],
        force=True,
    )
    ctx.obj = {"root": root}


# namespaces
app.add_typer(gyms_app, name="gyms")
app.add_typer(bosses_app, name="bosses")
app.add_typer(raids_app, name="raids")
