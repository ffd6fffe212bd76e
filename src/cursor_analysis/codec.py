"""Decoding of the ``composer.composerData`` session list.

The value is a JSON object whose ``allComposers`` array holds one entry per
composer. Only entries tagged ``"type": "head"`` are canonical sessions;
everything else (drafts, intermediate records) is skipped. The schema is
owned by Cursor and changes without notice, so every field is read with an
explicit default and nothing here raises on a bad entry.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .core import ChatSession
from .errors import CorruptStoreError

logger = logging.getLogger(__name__)

COMPOSERS_FIELD = "allComposers"
HEAD_TYPE = "head"
SUBTITLE_MAX_LEN = 100

_MIN_DATETIME = datetime.min.replace(tzinfo=timezone.utc)


def parse_composer_data(raw: str | bytes | None) -> list[ChatSession]:
    """Decode a composerData blob into sessions, newest update first.

    An unparsable blob yields an empty list.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Unparsable composerData: %s", e)
        return []

    sessions = []
    for entry in composer_entries(data):
        if not is_head(entry):
            continue
        session = decode_session(entry)
        if session is not None:
            sessions.append(session)

    return sort_sessions(sessions)


def load_composer_document(raw: str | bytes) -> dict:
    """Parse a composerData blob for modification, keeping every field."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptStoreError(f"composerData is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise CorruptStoreError("composerData is not a JSON object")
    return data


def dump_composer_document(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def composer_entries(data: Any) -> list:
    """Return the ``allComposers`` array, or an empty list if there is none."""
    if not isinstance(data, dict):
        return []
    entries = data.get(COMPOSERS_FIELD)
    return entries if isinstance(entries, list) else []


def is_head(entry: Any) -> bool:
    return isinstance(entry, dict) and entry.get("type") == HEAD_TYPE


def entry_id(entry: Any) -> str:
    if not isinstance(entry, dict):
        return ""
    return _get_str(entry, "composerId")


def decode_session(entry: dict) -> ChatSession | None:
    """Build a ChatSession from one allComposers entry, or None if malformed."""
    if not isinstance(entry, dict):
        return None
    try:
        return ChatSession(
            id=_get_str(entry, "composerId"),
            name=_get_str(entry, "name", "Unnamed"),
            mode=_get_str(entry, "unifiedMode", "unknown"),
            created_at=ms_to_datetime(entry.get("createdAt")),
            updated_at=ms_to_datetime(entry.get("lastUpdatedAt")),
            lines_added=_get_count(entry, "totalLinesAdded"),
            lines_removed=_get_count(entry, "totalLinesRemoved"),
            files_changed=_get_count(entry, "filesChangedCount"),
            context_usage=_get_percent(entry, "contextUsagePercent"),
            branch=_get_str(entry, "createdOnBranch"),
            is_archived=entry.get("isArchived") is True,
            subtitle=_get_str(entry, "subtitle")[:SUBTITLE_MAX_LEN],
        )
    except (TypeError, ValueError) as e:
        logger.debug("Dropping malformed composer entry: %s", e)
        return None


def sort_sessions(sessions: list[ChatSession]) -> list[ChatSession]:
    """Sort by update time descending; sessions without one go last.

    The sort is stable, so ties keep their input order.
    """
    return sorted(sessions, key=lambda s: s.updated_at or _MIN_DATETIME, reverse=True)


def ms_to_datetime(ms: Any) -> datetime | None:
    """Convert a millisecond timestamp to a UTC datetime, or None."""
    if isinstance(ms, bool) or not isinstance(ms, (int, float)):
        return None
    if ms <= 0:
        return None
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (ValueError, OSError, OverflowError):
        return None


def _get_str(entry: dict, key: str, default: str = "") -> str:
    val = entry.get(key)
    return val if isinstance(val, str) else default


def _get_count(entry: dict, key: str) -> int:
    val = entry.get(key)
    if isinstance(val, bool) or not isinstance(val, int):
        return 0
    return max(val, 0)


def _get_percent(entry: dict, key: str) -> float:
    val = entry.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return 0.0
    val = float(val)
    if val != val:  # NaN
        return 0.0
    return min(max(val, 0.0), 100.0)
