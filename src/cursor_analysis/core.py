"""Core data models for cursor-analysis."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ChatSession:
    """A single composer (chat or agent) session."""

    id: str
    name: str
    mode: str  # "agent" | "chat" | "edit" | ... | "unknown"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    lines_added: int = 0
    lines_removed: int = 0
    files_changed: int = 0
    context_usage: float = 0.0  # percent, 0-100
    branch: str = ""
    is_archived: bool = False
    subtitle: str = ""


@dataclass
class ProjectStats:
    """Sessions of every single-folder workspace that opened the same path."""

    name: str
    path: str
    chat_count: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    files_changed: int = 0
    chats: list[ChatSession] = field(default_factory=list)


@dataclass
class WorkspaceInfo:
    """One workspaceStorage/<id> directory and its sessions."""

    id: str
    projects: list[str] = field(default_factory=list)
    is_multi_project: bool = False
    created_at: Optional[datetime] = None
    chat_count: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    files_changed: int = 0
    recent_chats: list[ChatSession] = field(default_factory=list)


@dataclass
class DatabaseStats:
    """Row counts and value byte sizes of the global store."""

    item_table_count: int = 0
    item_table_size: int = 0
    cursor_disk_kv_count: int = 0
    cursor_disk_kv_size: int = 0
    bubble_count: int = 0
    bubble_size: int = 0
    composer_count: int = 0
    composer_size: int = 0
    checkpoint_count: int = 0
    checkpoint_size: int = 0
    agent_kv_count: int = 0
    agent_kv_size: int = 0


@dataclass
class StorageInfo:
    """On-disk footprint of Cursor's user data directories."""

    total_size: int
    total_size_human: str
    global_storage_size: int
    global_storage_size_human: str
    history_size: int
    history_size_human: str
    workspace_storage_size: int
    workspace_storage_size_human: str
    state_vscdb_size: int = 0
    state_vscdb_backup_size: int = 0


@dataclass
class OverviewStats:
    total_projects: int = 0
    total_chats: int = 0
    total_lines_added: int = 0
    total_lines_removed: int = 0
    net_lines: int = 0
    total_files_changed: int = 0
    agent_mode_count: int = 0
    chat_mode_count: int = 0


@dataclass
class AnalysisResult:
    storage: StorageInfo
    overview: OverviewStats
    database: DatabaseStats
    projects: list[ProjectStats]
    workspaces: list[WorkspaceInfo]


@dataclass
class TrashItem:
    """A soft-deleted session kept for recovery."""

    id: int
    chat_id: str
    chat_name: str
    project_path: str
    mode: str
    lines_added: int
    lines_removed: int
    files_changed: int
    deleted_at: Optional[datetime]
    original_data: str  # the complete allComposers entry, as JSON text
