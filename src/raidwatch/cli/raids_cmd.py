# src/raidwatch/cli/raids_cmd.py

from __future__ import annotations

from typing import List, Optional

import typer
from rich import print
from rich.table import Table

from raidwatch.errors import NotFoundError, ValidationError
from raidwatch.pogo.raid import Raid
from raidwatch.pogo.raid_map import RaidLookupOptions
from raidwatch.pogo.raid_manager import RaidManager

from .common import open_manager

app = typer.Typer(help="Inspect and refresh the saved raid list.")


def _print_raids(manager: RaidManager, raids: List[Raid]) -> None:
    now = manager.now()

    table = Table(title="Raids")
    table.add_column("gym")
    table.add_column("tier", justify="right")
    table.add_column("boss")
    table.add_column("state")
    table.add_column("hatch")
    table.add_column("ends")
    table.add_column("type")

    for raid in raids:
        table.add_row(
            raid.gym.name,
            str(raid.tier),
            raid.boss.display_name if raid.boss is not None else "",
            raid.state_at(now).value,
            raid.hatch_time.astimezone().strftime("%H:%M"),
            raid.expiry_time.astimezone().strftime("%H:%M"),
            raid.raid_type.value,
        )

    print(table)


@app.command("list")
def list_raids(
    ctx: typer.Context,
    min_tier: Optional[int] = typer.Option(None, "--min-tier", help="Lowest tier to show."),
    max_tier: Optional[int] = typer.Option(None, "--max-tier", help="Highest tier to show."),
    state: List[str] = typer.Option([], "--state", help="future | egg | hatched (repeatable)."),
):
    """
    Show the raids in the saved snapshot, soonest first.
    """
    manager = open_manager(ctx, auto_save=False)
    try:
        options = RaidLookupOptions(min_tier=min_tier, max_tier=max_tier, state_filter=state or None)
    except ValidationError as e:
        raise typer.BadParameter(str(e))

    try:
        raids = manager.get_all_raids(options)
    except NotFoundError as e:
        print(f"[yellow]{e}[/yellow]")
        return
    _print_raids(manager, raids)


@app.command("refresh")
def refresh_raids(ctx: typer.Context):
    """
    Advance every saved raid to its current state and save the result.
    """
    # construction already runs one refresh pass
    manager = open_manager(ctx, auto_save=True)
    manager.save()
    print(f"[green]{len(manager.raids)} raids after refresh.[/green]")
