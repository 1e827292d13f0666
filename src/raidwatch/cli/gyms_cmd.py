# src/raidwatch/cli/gyms_cmd.py

from __future__ import annotations

from typing import List, Optional

import typer
from rich import print
from rich.table import Table

from raidwatch.config.paths import gyms_path
from raidwatch.errors import LoadError
from raidwatch.pogo.converters import load_gym_directory
from raidwatch.pogo.gym_directory import GymLookupOptions

from .common import format_score, resolve_root

app = typer.Typer(help="Look up gyms in the workspace gym file.")


@app.command("lookup")
def lookup_gyms(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Gym name or nickname, typos allowed."),
    city: List[str] = typer.Option([], "--city", help="Preferred city (repeatable)."),
    zone: List[str] = typer.Option([], "--zone", help="Preferred zone (repeatable)."),
    ex: Optional[bool] = typer.Option(
        None,
        "--ex/--non-ex",
        help="Only EX-eligible or only non-EX gyms.",
    ),
    exact: bool = typer.Option(False, "--exact", help="Skip fuzzy matching."),
):
    """
    Show the gyms matching NAME, best first.
    """
    path = gyms_path(resolve_root(ctx))
    try:
        gyms = load_gym_directory(path)
    except LoadError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    options = GymLookupOptions(
        preferred_cities=city,
        preferred_zones=zone,
        ex_filter=None if ex is None else ("exEligible" if ex else "nonEx"),
        no_text_search=exact,
    )
    results = gyms.lookup(name, options)
    if not results:
        print(f"[yellow]No gym matches {name!r}.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Gyms matching {name!r}")
    table.add_column("score", justify="right")
    table.add_column("name")
    table.add_column("city")
    table.add_column("zones")
    table.add_column("EX", justify="center")

    for r in results:
        gym = r.item
        table.add_row(
            format_score(r.score),
            gym.name,
            gym.city,
            ", ".join(gym.zones),
            "✅" if gym.is_ex_eligible else "",
        )

    print(table)
