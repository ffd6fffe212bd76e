"""Low-level access to Cursor's state.vscdb key-value stores.

Every store holds two tables of the same shape: ``ItemTable`` (string keys,
mostly JSON text values) and ``cursorDiskKV`` (colon-prefixed keys such as
``bubbleId:<composer>:<bubble>``). Connections are opened per call and
closed before returning.
"""

import logging
import sqlite3
import urllib.parse
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import StoreNotFoundError

logger = logging.getLogger(__name__)

ITEM_TABLE = "ItemTable"
DISK_KV_TABLE = "cursorDiskKV"
COMPOSER_DATA_KEY = "composer.composerData"

_KNOWN_TABLES = (ITEM_TABLE, DISK_KV_TABLE)


@contextmanager
def open_store(db_path: Path, writable: bool = False) -> Iterator[sqlite3.Connection]:
    """Open a store and close it when the block exits.

    Read-only connections use SQLite's ``mode=ro`` URI so that inspecting a
    store never creates or modifies it. Writable connections are only
    handed out for stores that already exist.
    """
    if not db_path.is_file():
        raise StoreNotFoundError(f"Store not found: {db_path}", db_path)

    mode = "rw" if writable else "ro"
    uri = f"file:{urllib.parse.quote(str(db_path))}?mode={mode}"
    conn = sqlite3.connect(uri, uri=True)
    try:
        yield conn
    finally:
        conn.close()


def _check_table(table: str) -> str:
    if table not in _KNOWN_TABLES:
        raise ValueError(f"Unknown store table: {table}")
    return table


def table_stats(conn: sqlite3.Connection, table: str) -> tuple[int, int]:
    """Return ``(row count, total value bytes)`` for a table.

    A store that never created the table reports zeros.
    """
    sql = f'SELECT COUNT(*), COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0) FROM "{_check_table(table)}"'
    try:
        count, size = conn.execute(sql).fetchone()
    except sqlite3.OperationalError as e:
        logger.debug("No stats for table %s: %s", table, e)
        return 0, 0
    return int(count), int(size)


def prefix_stats(conn: sqlite3.Connection, table: str, prefix: str) -> tuple[int, int]:
    """Return ``(row count, total value bytes)`` for keys starting with ``prefix``.

    The match is exact and case-sensitive, unlike ``LIKE``.
    """
    sql = (
        f'SELECT COUNT(*), COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0) FROM "{_check_table(table)}" '
        "WHERE substr(key, 1, length(:prefix)) = :prefix"
    )
    try:
        count, size = conn.execute(sql, {"prefix": prefix}).fetchone()
    except sqlite3.OperationalError as e:
        logger.debug("No stats for %s* in %s: %s", prefix, table, e)
        return 0, 0
    return int(count), int(size)


def read_item(conn: sqlite3.Connection, key: str) -> str | None:
    """Read a single key from the ItemTable, or None if it is absent."""
    try:
        row = conn.execute(f'SELECT value FROM "{ITEM_TABLE}" WHERE key = ?', (key,)).fetchone()
    except sqlite3.OperationalError as e:
        logger.debug("Cannot read key '%s': %s", key, e)
        return None
    if row is None or row[0] is None:
        return None
    val = row[0]
    return val if isinstance(val, str) else bytes(val).decode("utf-8", errors="replace")


def write_item(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Overwrite an existing ItemTable key in a single committed write."""
    with conn:
        conn.execute(f'UPDATE "{ITEM_TABLE}" SET value = ? WHERE key = ?', (value, key))


def delete_prefix(conn: sqlite3.Connection, table: str, prefix: str) -> int:
    """Delete every row whose key starts with ``prefix``; return rows removed."""
    sql = f'DELETE FROM "{_check_table(table)}" WHERE substr(key, 1, length(:prefix)) = :prefix'
    with conn:
        cur = conn.execute(sql, {"prefix": prefix})
    return cur.rowcount
