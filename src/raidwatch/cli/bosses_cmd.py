# src/raidwatch/cli/bosses_cmd.py

from __future__ import annotations

from typing import Optional

import typer
from rich import print
from rich.table import Table

from raidwatch.config.paths import bosses_path
from raidwatch.errors import LoadError, ValidationError
from raidwatch.names.typedefs import SearchResults
from raidwatch.pogo.boss import Boss
from raidwatch.pogo.boss_directory import BossDirectory, BossLookupOptions
from raidwatch.pogo.converters import load_boss_directory
from raidwatch.pogo.game import validate_raid_tier

from .common import format_score, resolve_root

app = typer.Typer(help="Look up raid bosses in the workspace boss file.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load(ctx: typer.Context) -> BossDirectory:
    try:
        return load_boss_directory(bosses_path(resolve_root(ctx)))
    except LoadError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def _options(tier: Optional[str], active: Optional[bool]) -> BossLookupOptions:
    try:
        return BossLookupOptions(
            tier=validate_raid_tier(tier) if tier is not None else None,
            is_active=active,
        )
    except ValidationError as e:
        raise typer.BadParameter(str(e))


def _print_bosses(title: str, results: SearchResults[Boss]) -> None:
    table = Table(title=title)
    table.add_column("score", justify="right")
    table.add_column("boss")
    table.add_column("tier", justify="right")
    table.add_column("cp", justify="right")
    table.add_column("boosted", justify="right")
    table.add_column("active", justify="center")

    for r in results:
        boss = r.item
        table.add_row(
            format_score(r.score),
            boss.display_name,
            str(boss.tier),
            f"{boss.cp_range.min}-{boss.cp_range.max}" if boss.cp_range else "",
            f"{boss.boosted_cp_range.min}-{boss.boosted_cp_range.max}" if boss.boosted_cp_range else "",
            "✅" if boss.is_active() else "❌",
        )

    print(table)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("lookup")
def lookup_bosses(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Boss name, typos allowed."),
    tier: Optional[str] = typer.Option(None, "--tier", help="Only this tier (5, T5, tier 5)."),
    active: Optional[bool] = typer.Option(None, "--active/--inactive", help="Only bosses in or out of rotation."),
):
    """
    Show the bosses matching NAME, best first.
    """
    results = _load(ctx).lookup(name, _options(tier, active))
    if not results:
        print(f"[yellow]No boss matches {name!r}.[/yellow]")
        raise typer.Exit(code=1)
    _print_bosses(f"Bosses matching {name!r}", results)


@app.command("list")
def list_bosses(
    ctx: typer.Context,
    tier: Optional[str] = typer.Option(None, "--tier", help="Only this tier."),
    active: Optional[bool] = typer.Option(None, "--active/--inactive", help="Only bosses in or out of rotation."),
):
    """
    List every boss, optionally restricted to one tier or to the current rotation.
    """
    results = _load(ctx).get_all(_options(tier, active))
    if not results:
        print("[yellow]No bosses found.[/yellow]")
        return
    _print_bosses("Bosses", results)
