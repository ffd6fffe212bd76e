"""Deleting chat sessions from workspace stores.

Every delete runs the same sequence against each store it touches:

1. locate the store(s) for a project path or workspace id
2. read and parse ``composer.composerData``
3. select the entries to delete
4. archive each selected entry in the trash
5. drop the archived entries from ``allComposers``
6. write the document back in one update
7. delete the sessions' ``bubbleId:`` / ``checkpointId:`` rows

Steps 1-3 run for every store before anything is written and raise on
failure. An entry whose archival fails stays in the store. Step 7 is best
effort: the session list is the source of truth, so leftover rows only cost
disk space, and their failures are logged without undoing the commit.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from .codec import (
    COMPOSERS_FIELD,
    composer_entries,
    dump_composer_document,
    entry_id,
    is_head,
    load_composer_document,
)
from .config import get_workspace_storage_path
from .errors import CorruptStoreError, SessionNotFoundError, StoreNotFoundError
from .store import (
    COMPOSER_DATA_KEY,
    DISK_KV_TABLE,
    delete_prefix,
    open_store,
    read_item,
    write_item,
)
from .trash import TrashLedger
from .workspaces import find_stores_for_project, read_workspace_entry, workspace_label

logger = logging.getLogger(__name__)

CASCADE_PREFIXES = ("bubbleId", "checkpointId")

Selector = Callable[[object], bool]


@dataclass
class _StoreDocument:
    db_path: Path
    data: dict
    selected: list = field(default_factory=list)


def _has_id(entry: object, chat_ids: set[str]) -> bool:
    """True for a dict entry whose composerId is one of ``chat_ids``.

    Entries without a string composerId never match.
    """
    if not isinstance(entry, dict):
        return False
    composer_id = entry.get("composerId")
    return isinstance(composer_id, str) and composer_id in chat_ids


def delete_chat(project_path: str, chat_id: str, **kwargs) -> bool:
    """Delete one session of a project, moving it to the trash."""
    if not chat_id:
        raise SessionNotFoundError(chat_id)
    wanted = {chat_id}
    removed = _delete_from_project(
        project_path,
        lambda entry: _has_id(entry, wanted),
        require_match=chat_id,
        **kwargs,
    )
    return removed > 0


def delete_chats_batch(project_path: str, chat_ids: Iterable[str], **kwargs) -> int:
    """Delete several sessions of a project; unknown and empty ids are ignored."""
    wanted = {chat_id for chat_id in chat_ids if chat_id}
    if not wanted:
        return 0
    return _delete_from_project(
        project_path, lambda entry: _has_id(entry, wanted), **kwargs
    )


def delete_project_chats(project_path: str, **kwargs) -> int:
    """Delete every session of a project."""
    return _delete_from_project(project_path, is_head, **kwargs)


def delete_workspace_chats(
    workspace_id: str,
    storage_root: Path | None = None,
    trash: TrashLedger | None = None,
) -> int:
    """Delete every session stored in one workspaceStorage directory."""
    if storage_root is None:
        storage_root = get_workspace_storage_path()

    # Workspace ids are plain directory names; anything else could escape workspaceStorage.
    if workspace_id in ("", ".", "..") or Path(workspace_id).name != workspace_id:
        raise StoreNotFoundError(f"No store found for workspace {workspace_id!r}")

    entry = read_workspace_entry(storage_root / workspace_id)
    if not entry.has_store:
        raise StoreNotFoundError(
            f"No store found for workspace {workspace_id!r}", entry.db_path
        )
    return _run_delete([entry.db_path], is_head, workspace_label(entry), trash)


def _delete_from_project(
    project_path: str,
    selector: Selector,
    require_match: str | None = None,
    storage_root: Path | None = None,
    trash: TrashLedger | None = None,
) -> int:
    if storage_root is None:
        storage_root = get_workspace_storage_path()

    db_paths = find_stores_for_project(storage_root, project_path)
    if not db_paths:
        raise StoreNotFoundError(f"No store found for project {project_path}")
    return _run_delete(db_paths, selector, project_path, trash, require_match)


def _run_delete(
    db_paths: list[Path],
    selector: Selector,
    attribution: str,
    trash: TrashLedger | None,
    require_match: str | None = None,
) -> int:
    documents = _read_documents(db_paths)
    if not documents:
        raise StoreNotFoundError(
            f"No chat data found for {attribution}", db_paths[0]
        )

    for doc in documents:
        doc.selected = [e for e in composer_entries(doc.data) if selector(e)]

    if require_match is not None and not any(doc.selected for doc in documents):
        raise SessionNotFoundError(require_match)

    if trash is None:
        trash = TrashLedger()

    removed = 0
    for doc in documents:
        if doc.selected:
            removed += _apply(doc, attribution, trash)
    return removed


def _read_documents(db_paths: list[Path]) -> list[_StoreDocument]:
    documents = []
    for db_path in db_paths:
        with open_store(db_path) as conn:
            raw = read_item(conn, COMPOSER_DATA_KEY)
        if raw is None:
            logger.debug("No %s in %s", COMPOSER_DATA_KEY, db_path)
            continue
        try:
            data = load_composer_document(raw)
        except CorruptStoreError as e:
            e.path = db_path
            raise
        documents.append(_StoreDocument(db_path=db_path, data=data))
    return documents


def _apply(doc: _StoreDocument, attribution: str, trash: TrashLedger) -> int:
    archived = []
    for entry in doc.selected:
        try:
            trash.add(entry, attribution)
        except (sqlite3.Error, OSError, TypeError, ValueError, OverflowError) as e:
            logger.warning(
                "Could not archive chat %s, keeping it in %s: %s",
                entry_id(entry), doc.db_path, e,
            )
            continue
        archived.append(entry)

    if not archived:
        return 0

    archived_ids = {id(entry) for entry in archived}
    doc.data[COMPOSERS_FIELD] = [
        e for e in composer_entries(doc.data) if id(e) not in archived_ids
    ]

    with open_store(doc.db_path, writable=True) as conn:
        write_item(conn, COMPOSER_DATA_KEY, dump_composer_document(doc.data))
        _cascade(conn, [entry_id(e) for e in archived])

    logger.info("Deleted %d chat(s) from %s", len(archived), doc.db_path)
    return len(archived)


def _cascade(conn: sqlite3.Connection, chat_ids: list[str]) -> None:
    for chat_id in chat_ids:
        if not chat_id:
            continue
        for prefix in CASCADE_PREFIXES:
            key_prefix = f"{prefix}:{chat_id}:"
            try:
                delete_prefix(conn, DISK_KV_TABLE, key_prefix)
            except sqlite3.Error as e:
                logger.warning("Could not delete %s* rows: %s", key_prefix, e)
