"""
Configuration and path helpers for raidwatch.
"""

from .paths import (
    DEFAULT_BOSSES_FILE,
    DEFAULT_GYMS_FILE,
    DEFAULT_SAVE_FILE,
    bosses_path,
    find_workspace_root,
    gyms_path,
    save_path,
    workspace_root,
)

__all__ = [
    "DEFAULT_BOSSES_FILE",
    "DEFAULT_GYMS_FILE",
    "DEFAULT_SAVE_FILE",
    "bosses_path",
    "find_workspace_root",
    "gyms_path",
    "save_path",
    "workspace_root",
]
