"""Platform-aware path resolution for Cursor data directories."""

import os
import sys
from pathlib import Path


def get_cursor_user_path() -> Path:
    """Return the path to Cursor's ``User`` data directory."""
    env = os.environ.get("CURSOR_ANALYSIS_USER_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "Cursor" / "User"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "Cursor" / "User"
    else:  # Linux
        return Path.home() / ".config" / "Cursor" / "User"


def get_workspace_storage_path(user_path: Path | None = None) -> Path:
    """Return the path to Cursor's workspaceStorage directory."""
    return (user_path or get_cursor_user_path()) / "workspaceStorage"


def get_global_storage_path(user_path: Path | None = None) -> Path:
    """Return the path to Cursor's globalStorage directory."""
    return (user_path or get_cursor_user_path()) / "globalStorage"


def get_global_db_path(user_path: Path | None = None) -> Path:
    """Return the path to the global state.vscdb."""
    return get_global_storage_path(user_path) / "state.vscdb"


def get_history_path(user_path: Path | None = None) -> Path:
    """Return the path to Cursor's local file History directory."""
    return (user_path or get_cursor_user_path()) / "History"


def get_trash_db_path() -> Path:
    """Return the path to the trash database kept alongside Cursor's data."""
    env = os.environ.get("CURSOR_ANALYSIS_TRASH_DB")
    if env:
        return Path(env)

    return get_cursor_user_path() / "cursor-analysis-trash.db"
