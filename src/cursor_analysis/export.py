"""Export analysis results to JSON and Markdown formats."""

import dataclasses
import json
from datetime import datetime
from typing import Any

from .core import AnalysisResult, ChatSession


def to_jsonable(obj: Any) -> Any:
    """Convert result dataclasses (and lists of them) to plain JSON types."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


def to_json(obj: Any) -> str:
    return json.dumps(to_jsonable(obj), indent=2, ensure_ascii=False)


def analysis_to_json(result: AnalysisResult) -> str:
    """Export a full analysis as structured JSON."""
    return to_json(result)


def _fmt_time(ts: datetime | None) -> str:
    return ts.strftime("%Y-%m-%d %H:%M") if ts else "-"


def _chat_line(chat: ChatSession) -> str:
    return (
        f"- {chat.name} ({chat.mode}, updated {_fmt_time(chat.updated_at)}): "
        f"+{chat.lines_added} / -{chat.lines_removed}, {chat.files_changed} files"
    )


def analysis_to_markdown(result: AnalysisResult, chats_per_project: int = 5) -> str:
    """Export a full analysis as a Markdown report."""
    ov = result.overview
    st = result.storage
    db = result.database

    lines = ["# Cursor usage report", ""]
    lines.append(f"**Projects:** {ov.total_projects}")
    lines.append(f"**Chats:** {ov.total_chats} ({ov.agent_mode_count} agent, {ov.chat_mode_count} other)")
    lines.append(
        f"**Lines:** +{ov.total_lines_added} / -{ov.total_lines_removed} (net {ov.net_lines})"
    )
    lines.append(f"**Files changed:** {ov.total_files_changed}")
    lines.extend(["", "## Storage", ""])
    lines.append(f"- Total: {st.total_size_human}")
    lines.append(f"- globalStorage: {st.global_storage_size_human}")
    lines.append(f"- History: {st.history_size_human}")
    lines.append(f"- workspaceStorage: {st.workspace_storage_size_human}")
    lines.append(
        f"- Global store: {db.item_table_count} ItemTable rows, "
        f"{db.cursor_disk_kv_count} cursorDiskKV rows ({db.bubble_count} bubbles, "
        f"{db.checkpoint_count} checkpoints)"
    )
    lines.extend(["", "## Projects", ""])

    for project in result.projects:
        lines.append(f"### {project.name}")
        lines.append("")
        lines.append(f"`{project.path}`: {project.chat_count} chats, "
                     f"+{project.lines_added} / -{project.lines_removed}")
        lines.append("")
        for chat in project.chats[:chats_per_project]:
            lines.append(_chat_line(chat))
        lines.append("")

    multi = [w for w in result.workspaces if w.is_multi_project]
    if multi:
        lines.extend(["## Multi-root workspaces", ""])
        for ws in multi:
            lines.append(f"- {ws.id}: {', '.join(ws.projects) or '(unresolved)'}, "
                         f"{ws.chat_count} chats")
        lines.append("")

    return "\n".join(lines)
