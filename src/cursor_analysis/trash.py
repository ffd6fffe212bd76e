"""Trash for deleted chat sessions.

Deleted sessions are copied, with their complete original JSON record, into a
small SQLite database of our own (not Cursor's), so they survive even if
Cursor's stores are wiped later. Rows are never pruned automatically.
"""

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path

from .config import get_trash_db_path
from .core import TrashItem

logger = logging.getLogger(__name__)

DELETED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS trash (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        chat_id TEXT NOT NULL,
        chat_name TEXT,
        project_path TEXT,
        mode TEXT,
        lines_added INTEGER DEFAULT 0,
        lines_removed INTEGER DEFAULT 0,
        files_changed INTEGER DEFAULT 0,
        deleted_at TEXT NOT NULL,
        original_data TEXT
    )
"""

_COLUMNS = (
    "id, chat_id, chat_name, project_path, mode, lines_added, "
    "lines_removed, files_changed, deleted_at, original_data"
)


class TrashLedger:
    """Append-only log of soft-deleted sessions."""

    def __init__(self, db_path: Path | None = None):
        if db_path is None:
            db_path = get_trash_db_path()
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.execute(_SCHEMA)
        return conn

    def add(self, entry: dict, project_path: str) -> int:
        """Archive one allComposers entry; return the new trash id."""
        row = (
            _str_field(entry, "composerId", ""),
            _str_field(entry, "name", "Unnamed"),
            project_path,
            _str_field(entry, "unifiedMode", "unknown"),
            _int_field(entry, "totalLinesAdded"),
            _int_field(entry, "totalLinesRemoved"),
            _int_field(entry, "filesChangedCount"),
            datetime.now(timezone.utc).strftime(DELETED_AT_FORMAT),
            json.dumps(entry, ensure_ascii=False),
        )
        with closing(self._connect()) as conn, conn:
            cur = conn.execute(
                "INSERT INTO trash (chat_id, chat_name, project_path, mode, lines_added, "
                "lines_removed, files_changed, deleted_at, original_data) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                row,
            )
            return cur.lastrowid

    def list_items(self) -> list[TrashItem]:
        """Return every trashed session, most recently deleted first."""
        with closing(self._connect()) as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM trash ORDER BY deleted_at DESC, id DESC"
            ).fetchall()
        return [_row_to_item(row) for row in rows]

    def delete(self, item_id: int) -> bool:
        """Permanently remove one trash row. Unknown ids are not an error."""
        with closing(self._connect()) as conn, conn:
            cur = conn.execute("DELETE FROM trash WHERE id = ?", (item_id,))
            return cur.rowcount > 0

    def clear(self) -> int:
        """Empty the trash and return how many rows were removed."""
        with closing(self._connect()) as conn, conn:
            count = conn.execute("SELECT COUNT(*) FROM trash").fetchone()[0]
            conn.execute("DELETE FROM trash")
        logger.info("Cleared %d trash item(s)", count)
        return count


def get_trash_items() -> list[TrashItem]:
    return TrashLedger().list_items()


def clear_trash() -> int:
    return TrashLedger().clear()


def delete_trash_item(trash_id: int) -> bool:
    return TrashLedger().delete(trash_id)


def _row_to_item(row) -> TrashItem:
    return TrashItem(
        id=row[0],
        chat_id=row[1],
        chat_name=row[2] or "",
        project_path=row[3] or "",
        mode=row[4] or "",
        lines_added=row[5] or 0,
        lines_removed=row[6] or 0,
        files_changed=row[7] or 0,
        deleted_at=_parse_deleted_at(row[8]),
        original_data=row[9] or "",
    )


def _parse_deleted_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, DELETED_AT_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _str_field(entry: dict, key: str, default: str) -> str:
    val = entry.get(key)
    return val if isinstance(val, str) else default


def _int_field(entry: dict, key: str) -> int:
    val = entry.get(key)
    if isinstance(val, bool) or not isinstance(val, int):
        return 0
    return val
