"""Project, workspace and storage statistics.

Everything is recomputed from the stores on each call. Reporting never fails
because of one bad workspace: unreadable stores and malformed JSON are
logged and treated as having no sessions.
"""

import logging
import sqlite3
from pathlib import Path

from . import __version__
from .codec import parse_composer_data, sort_sessions
from .config import (
    get_cursor_user_path,
    get_global_db_path,
    get_global_storage_path,
    get_history_path,
    get_workspace_storage_path,
)
from .core import (
    AnalysisResult,
    ChatSession,
    DatabaseStats,
    OverviewStats,
    ProjectStats,
    StorageInfo,
    WorkspaceInfo,
)
from .errors import CursorAnalysisError
from .sizes import dir_sizes, file_size, format_size
from .store import (
    COMPOSER_DATA_KEY,
    DISK_KV_TABLE,
    ITEM_TABLE,
    open_store,
    prefix_stats,
    read_item,
    table_stats,
)
from .workspaces import iter_workspace_entries

logger = logging.getLogger(__name__)

AGENT_MODE = "agent"

# DatabaseStats field prefix -> cursorDiskKV key prefix
_KV_CATEGORIES = {
    "bubble": "bubbleId:",
    "composer": "composerData:",
    "checkpoint": "checkpointId:",
    "agent_kv": "agentKv:",
}


def get_app_version() -> str:
    return __version__


def read_sessions(db_path: Path) -> list[ChatSession]:
    """Read the sessions of one workspace store, or [] if it can't be read."""
    try:
        with open_store(db_path) as conn:
            raw = read_item(conn, COMPOSER_DATA_KEY)
    except (sqlite3.Error, OSError, CursorAnalysisError) as e:
        logger.warning("Skipping store %s: %s", db_path, e)
        return []
    return parse_composer_data(raw)


def _project_name(path: str) -> str:
    return path.rstrip("/").split("/")[-1] or path


def get_all_projects(storage_root: Path | None = None) -> list[ProjectStats]:
    """Return per-project stats for single-folder workspaces with sessions.

    Several workspaceStorage directories can resolve to the same folder;
    their sessions are accumulated into one entry.
    """
    if storage_root is None:
        storage_root = get_workspace_storage_path()

    projects: dict[str, ProjectStats] = {}
    for entry in iter_workspace_entries(storage_root):
        path = entry.project_path
        if not path or not entry.has_store:
            continue

        sessions = read_sessions(entry.db_path)
        if not sessions:
            continue

        stats = projects.get(path)
        if stats is None:
            stats = projects[path] = ProjectStats(name=_project_name(path), path=path)
        stats.chat_count += len(sessions)
        stats.lines_added += sum(s.lines_added for s in sessions)
        stats.lines_removed += sum(s.lines_removed for s in sessions)
        stats.files_changed += sum(s.files_changed for s in sessions)
        stats.chats.extend(sessions)

    result = [p for p in projects.values() if p.chat_count > 0]
    for p in result:
        p.chats = sort_sessions(p.chats)
    result.sort(key=lambda p: p.lines_added, reverse=True)
    return result


def get_workspaces(storage_root: Path | None = None) -> list[WorkspaceInfo]:
    """Return one entry per workspaceStorage directory that has sessions."""
    if storage_root is None:
        storage_root = get_workspace_storage_path()

    workspaces = []
    for entry in iter_workspace_entries(storage_root):
        if not entry.has_store:
            continue
        sessions = read_sessions(entry.db_path)
        if not sessions:
            continue

        workspaces.append(WorkspaceInfo(
            id=entry.id,
            projects=list(entry.projects),
            is_multi_project=entry.is_multi_project,
            created_at=entry.created_at,
            chat_count=len(sessions),
            lines_added=sum(s.lines_added for s in sessions),
            lines_removed=sum(s.lines_removed for s in sessions),
            files_changed=sum(s.files_changed for s in sessions),
            recent_chats=sessions,
        ))

    workspaces.sort(key=lambda w: w.lines_added, reverse=True)
    return workspaces


def get_overview(
    storage_root: Path | None = None,
    projects: list[ProjectStats] | None = None,
) -> OverviewStats:
    """Sum the project stats and count sessions by mode."""
    if projects is None:
        projects = get_all_projects(storage_root)

    overview = OverviewStats(total_projects=len(projects))
    for p in projects:
        overview.total_chats += p.chat_count
        overview.total_lines_added += p.lines_added
        overview.total_lines_removed += p.lines_removed
        overview.total_files_changed += p.files_changed
        for chat in p.chats:
            if chat.mode == AGENT_MODE:
                overview.agent_mode_count += 1
            else:
                overview.chat_mode_count += 1
    overview.net_lines = overview.total_lines_added - overview.total_lines_removed
    return overview


def get_database_stats(db_path: Path | None = None) -> DatabaseStats:
    """Row counts and value sizes of the global store's tables and key categories."""
    if db_path is None:
        db_path = get_global_db_path()

    stats = DatabaseStats()
    try:
        with open_store(db_path) as conn:
            stats.item_table_count, stats.item_table_size = table_stats(conn, ITEM_TABLE)
            stats.cursor_disk_kv_count, stats.cursor_disk_kv_size = table_stats(conn, DISK_KV_TABLE)
            for name, prefix in _KV_CATEGORIES.items():
                count, size = prefix_stats(conn, DISK_KV_TABLE, prefix)
                setattr(stats, f"{name}_count", count)
                setattr(stats, f"{name}_size", size)
    except (sqlite3.Error, CursorAnalysisError) as e:
        logger.warning("Cannot read global store %s: %s", db_path, e)
        return DatabaseStats()
    return stats


def get_storage_info(user_path: Path | None = None) -> StorageInfo:
    """Measure Cursor's data directories on disk."""
    if user_path is None:
        user_path = get_cursor_user_path()

    global_storage = get_global_storage_path(user_path)
    history = get_history_path(user_path)
    workspace_storage = get_workspace_storage_path(user_path)

    global_size, history_size, workspace_size = dir_sizes(
        [global_storage, history, workspace_storage]
    )
    total = global_size + history_size + workspace_size

    return StorageInfo(
        total_size=total,
        total_size_human=format_size(total),
        global_storage_size=global_size,
        global_storage_size_human=format_size(global_size),
        history_size=history_size,
        history_size_human=format_size(history_size),
        workspace_storage_size=workspace_size,
        workspace_storage_size_human=format_size(workspace_size),
        state_vscdb_size=file_size(get_global_db_path(user_path)),
        state_vscdb_backup_size=file_size(global_storage / "state.vscdb.backup"),
    )


def get_full_analysis(user_path: Path | None = None) -> AnalysisResult:
    """Storage, overview, database, projects and workspaces in one result."""
    if user_path is None:
        user_path = get_cursor_user_path()
    storage_root = get_workspace_storage_path(user_path)

    projects = get_all_projects(storage_root)
    return AnalysisResult(
        storage=get_storage_info(user_path),
        overview=get_overview(projects=projects),
        database=get_database_stats(get_global_db_path(user_path)),
        projects=projects,
        workspaces=get_workspaces(storage_root),
    )
