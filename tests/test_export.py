"""Tests for export functionality."""

import json
from datetime import datetime, timezone

import pytest

from cursor_analysis.core import (
    AnalysisResult,
    ChatSession,
    DatabaseStats,
    OverviewStats,
    ProjectStats,
    StorageInfo,
    WorkspaceInfo,
)
from cursor_analysis.export import analysis_to_json, analysis_to_markdown, to_jsonable
from cursor_analysis.sizes import format_size


@pytest.fixture
def sample_result():
    chat = ChatSession(
        id="abc",
        name="Fix authentication bug",
        mode="agent",
        created_at=datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 15, 11, 0, 0, tzinfo=timezone.utc),
        lines_added=40,
        lines_removed=4,
        files_changed=2,
    )
    project = ProjectStats(
        name="myapp", path="/Users/test/dev/myapp", chat_count=1,
        lines_added=40, lines_removed=4, files_changed=2, chats=[chat],
    )
    workspace = WorkspaceInfo(
        id="ws-multi",
        projects=["/Users/test/dev/api", "/Users/test/dev/web"],
        is_multi_project=True,
        chat_count=1,
        recent_chats=[chat],
    )
    return AnalysisResult(
        storage=StorageInfo(
            total_size=3072, total_size_human="3.00 KB",
            global_storage_size=1024, global_storage_size_human="1.00 KB",
            history_size=0, history_size_human="0 B",
            workspace_storage_size=2048, workspace_storage_size_human="2.00 KB",
        ),
        overview=OverviewStats(
            total_projects=1, total_chats=1, total_lines_added=40,
            total_lines_removed=4, net_lines=36, total_files_changed=2,
            agent_mode_count=1,
        ),
        database=DatabaseStats(item_table_count=10, bubble_count=3),
        projects=[project],
        workspaces=[workspace],
    )


class TestJsonExport:
    def test_produces_valid_json(self, sample_result):
        data = json.loads(analysis_to_json(sample_result))
        assert set(data) == {"storage", "overview", "database", "projects", "workspaces"}

    def test_datetimes_are_iso(self, sample_result):
        data = json.loads(analysis_to_json(sample_result))
        chat = data["projects"][0]["chats"][0]
        assert chat["created_at"] == "2025-01-15T10:00:00+00:00"
        assert data["workspaces"][0]["created_at"] is None

    def test_to_jsonable_lists(self, sample_result):
        assert to_jsonable(sample_result.projects)[0]["name"] == "myapp"


class TestMarkdownExport:
    def test_includes_overview(self, sample_result):
        result = analysis_to_markdown(sample_result)
        assert "# Cursor usage report" in result
        assert "**Chats:** 1 (1 agent, 0 other)" in result
        assert "net 36" in result

    def test_includes_projects_and_chats(self, sample_result):
        result = analysis_to_markdown(sample_result)
        assert "### myapp" in result
        assert "- Fix authentication bug (agent, updated 2025-01-15 11:00)" in result

    def test_includes_multi_root_workspaces(self, sample_result):
        result = analysis_to_markdown(sample_result)
        assert "## Multi-root workspaces" in result
        assert "/Users/test/dev/api, /Users/test/dev/web" in result


@pytest.mark.parametrize("size,expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1024, "1.00 KB"),
    (1536, "1.50 KB"),
    (1024 ** 2, "1.00 MB"),
    (5 * 1024 ** 3, "5.00 GB"),
    (2048 * 1024 ** 3, "2048.00 GB"),
])
def test_format_size(size, expected):
    assert format_size(size) == expected
