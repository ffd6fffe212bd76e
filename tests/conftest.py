"""Shared test fixtures for cursor-analysis."""

import json
import sqlite3
from datetime import datetime, timezone

import pytest

NOW_MS = int(datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)
LATER_MS = int(datetime(2025, 1, 15, 11, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)
MUCH_LATER_MS = int(datetime(2025, 1, 15, 14, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)

PROJECT_PATH = "/Users/testuser/dev/my project"
MULTI_ROOT_TS = "1736935200000"  # 2025-01-15 10:00 UTC


def _file_uri(path) -> str:
    return "file://" + str(path).replace(" ", "%20")


def _create_store(db_path, composer_data=None, kv=None, raw_composer_data=None):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
    conn.execute("CREATE TABLE cursorDiskKV (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
    if raw_composer_data is None and composer_data is not None:
        raw_composer_data = json.dumps(composer_data)
    if raw_composer_data is not None:
        conn.execute("INSERT INTO ItemTable VALUES (?, ?)", ("composer.composerData", raw_composer_data))
    conn.execute("INSERT INTO ItemTable VALUES (?, ?)", ("workbench.panel.state", '{"open": true}'))
    for key, value in (kv or {}).items():
        conn.execute("INSERT INTO cursorDiskKV VALUES (?, ?)", (key, value))
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def make_store():
    """Return a factory that writes a synthetic state.vscdb."""
    return _create_store


@pytest.fixture
def make_workspace(tmp_path, make_store):
    """Return a factory for workspaceStorage/<id> directories."""
    storage = tmp_path / "User" / "workspaceStorage"

    def _make(ws_id, descriptor=None, composers=None, kv=None, raw_composer_data=None, store=True):
        ws_dir = storage / ws_id
        ws_dir.mkdir(parents=True, exist_ok=True)
        if descriptor is not None:
            (ws_dir / "workspace.json").write_text(json.dumps(descriptor), encoding="utf-8")
        if store:
            composer_data = None
            if composers is not None:
                composer_data = {"allComposers": composers, "selectedComposerIds": []}
            make_store(ws_dir / "state.vscdb", composer_data, kv, raw_composer_data)
        return ws_dir

    return _make


def composer(composer_id, type="head", **fields):
    entry = {"type": type, "composerId": composer_id}
    entry.update(fields)
    return entry


@pytest.fixture
def cursor_user_dir(tmp_path, monkeypatch, make_workspace, make_store):
    """Create a synthetic Cursor User directory and point the config at it.

    Layout:
    - ws-single-a: "my project", heads A (agent) and B (chat) plus a draft C
    - ws-single-a-old: the same folder from an older install, head D
    - ws-multi: multi-root workspace (api + web), head E
    - ws-empty: store without composerData
    - ws-corrupt: composerData that is not JSON
    - ws-nodesc: no workspace.json, head F
    """
    user = tmp_path / "User"

    make_workspace(
        "ws-single-a",
        descriptor={"folder": _file_uri(PROJECT_PATH)},
        composers=[
            composer(
                "A", name="Fix auth bug", unifiedMode="agent",
                createdAt=NOW_MS, lastUpdatedAt=LATER_MS,
                totalLinesAdded=100, totalLinesRemoved=10, filesChangedCount=3,
                contextUsagePercent=42.5, createdOnBranch="main",
                subtitle="x" * 150, futureField={"kept": True},
            ),
            composer(
                "B", name="Add dark mode", unifiedMode="chat",
                createdAt=LATER_MS, lastUpdatedAt=MUCH_LATER_MS,
                totalLinesAdded=20, totalLinesRemoved=5, filesChangedCount=1,
            ),
            composer("C", type="draft", name="Draft", totalLinesAdded=999),
        ],
        kv={
            "bubbleId:A:1": '{"text": "hello"}',
            "bubbleId:A:2": '{"text": "world"}',
            "checkpointId:A:1": "{}",
            "bubbleId:B:1": '{"text": "dark"}',
            "bubbleId:AB:1": '{"text": "other"}',
        },
    )
    make_workspace(
        "ws-single-a-old",
        descriptor={"folder": _file_uri(PROJECT_PATH)},
        composers=[composer("D", name="Old chat", unifiedMode="agent", totalLinesAdded=5)],
    )

    ws_file = user.parent / "Workspaces" / MULTI_ROOT_TS / "workspace.json"
    ws_file.parent.mkdir(parents=True)
    ws_file.write_text(json.dumps({
        "folders": [
            {"path": "/Users/testuser/dev/api"},
            {"uri": "file:///Users/testuser/dev/web%20app"},
        ],
    }), encoding="utf-8")
    make_workspace(
        "ws-multi",
        descriptor={"workspace": _file_uri(ws_file)},
        composers=[composer("E", name="Monorepo refactor", unifiedMode="agent", totalLinesAdded=500)],
    )

    make_workspace("ws-empty", descriptor={"folder": "file:///Users/testuser/dev/empty"})
    make_workspace(
        "ws-corrupt",
        descriptor={"folder": "file:///Users/testuser/dev/broken"},
        raw_composer_data="{not json",
    )
    make_workspace("ws-nodesc", composers=[composer("F", name="Loose", unifiedMode="chat", totalLinesAdded=1)])

    make_store(
        user / "globalStorage" / "state.vscdb",
        kv={
            "bubbleId:x:1": "12345",
            "bubbleId:x:2": "678",
            "BUBBLEID:x:3": "ignored",
            "composerData:x": "{}",
            "checkpointId:x:1": "ab",
            "agentKv:blob:1": "abcdef",
        },
    )
    history = user / "History" / "abc"
    history.mkdir(parents=True)
    (history / "entries.json").write_text("x" * 2048, encoding="utf-8")

    monkeypatch.setenv("CURSOR_ANALYSIS_USER_PATH", str(user))
    monkeypatch.setenv("CURSOR_ANALYSIS_TRASH_DB", str(tmp_path / "trash" / "trash.db"))
    return user


@pytest.fixture
def scenario_user_dir(tmp_path, monkeypatch, make_workspace):
    """One project with two head sessions (A, B) and one draft."""
    make_workspace(
        "ws1",
        descriptor={"folder": "file:///work/proj"},
        composers=[
            composer("A", name="First", unifiedMode="agent", lastUpdatedAt=LATER_MS, totalLinesAdded=3),
            composer("B", name="Second", unifiedMode="chat", lastUpdatedAt=NOW_MS, totalLinesAdded=4),
            composer("draft-1", type="draft", name="Draft"),
        ],
    )
    user = tmp_path / "User"
    monkeypatch.setenv("CURSOR_ANALYSIS_USER_PATH", str(user))
    monkeypatch.setenv("CURSOR_ANALYSIS_TRASH_DB", str(tmp_path / "trash.db"))
    return user
