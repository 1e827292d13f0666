# src/raidwatch/config/paths.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DOTDIR_NAME = ".raidwatch"

DATA_DIR = "data"
STATE_DIR = "state"

BOSSES_FILE = "bosses.json"
GYMS_FILE = "gyms.json"
SAVE_FILE = "latest.json"

DEFAULT_BOSSES_FILE = Path(DATA_DIR) / BOSSES_FILE
DEFAULT_GYMS_FILE = Path(DATA_DIR) / GYMS_FILE
DEFAULT_SAVE_FILE = Path(STATE_DIR) / SAVE_FILE

# ---------------------------------------------------------------------------
# Workspace discovery
# ---------------------------------------------------------------------------

def find_workspace_root(start: Optional[Path] = None) -> Path:
    """
    Locate the workspace root by walking upward until a `.raidwatch/`
    directory is found.
    """
    start = start or Path.cwd()
    p = start.resolve()

    for parent in [p] + list(p.parents):
        if (parent / DOTDIR_NAME).is_dir():
            return parent

    raise RuntimeError(
        f"No {DOTDIR_NAME}/ directory found upward from {start}. "
        f"Create one to mark the workspace root."
    )


def workspace_root(root: Optional[Path] = None) -> Path:
    if root is not None:
        return Path(root)
    return find_workspace_root()

# ---------------------------------------------------------------------------
# Workspace files
# ---------------------------------------------------------------------------

def bosses_path(root: Optional[Path] = None) -> Path:
    return workspace_root(root) / DEFAULT_BOSSES_FILE

def gyms_path(root: Optional[Path] = None) -> Path:
    return workspace_root(root) / DEFAULT_GYMS_FILE

def save_path(root: Optional[Path] = None) -> Path:
    return workspace_root(root) / DEFAULT_SAVE_FILE
