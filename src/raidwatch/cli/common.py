# src/raidwatch/cli/common.py

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich import print

from raidwatch.config.paths import bosses_path, find_workspace_root, gyms_path, save_path
from raidwatch.errors import LoadError
from raidwatch.pogo.raid_manager import RaidManager, RaidManagerOptions


def resolve_root(ctx: typer.Context) -> Path:
    root: Optional[Path] = (ctx.obj or {}).get("root")
    if root is not None:
        return root
    try:
        return find_workspace_root()
    except RuntimeError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def open_manager(ctx: typer.Context, auto_save: bool) -> RaidManager:
    root = resolve_root(ctx)
    options = RaidManagerOptions(
        bosses_file=bosses_path(root),
        gyms_file=gyms_path(root),
        save_file=save_path(root),
        auto_save=auto_save,
    )
    try:
        return RaidManager(options)
    except LoadError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def format_score(score: float) -> str:
    return f"{score:.2f}"
