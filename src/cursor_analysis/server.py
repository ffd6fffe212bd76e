"""FastAPI web server for cursor-analysis."""

import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from . import __version__, analysis, mutations, trash
from .errors import CorruptStoreError, CursorAnalysisError, NotFoundError
from .export import to_jsonable

logger = logging.getLogger(__name__)

app = FastAPI(title="cursor-analysis", version=__version__)


class DeleteChatRequest(BaseModel):
    project_path: str
    chat_id: str


class DeleteChatsBatchRequest(BaseModel):
    project_path: str
    chat_ids: list[str]


class DeleteProjectChatsRequest(BaseModel):
    project_path: str


def _raise_http(e: CursorAnalysisError):
    """Translate a core error into the matching HTTP error."""
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, CorruptStoreError):
        raise HTTPException(status_code=422, detail=str(e))
    raise HTTPException(status_code=500, detail=str(e))


# ── Reports ──────────────────────────────────────────────────────


@app.get("/api/version")
async def get_version():
    return {"version": analysis.get_app_version()}


@app.get("/api/storage")
async def get_storage():
    """Return the on-disk size of Cursor's data directories."""
    return to_jsonable(analysis.get_storage_info())


@app.get("/api/database")
async def get_database():
    """Return row counts and sizes of the global store."""
    return to_jsonable(analysis.get_database_stats())


@app.get("/api/projects")
async def get_projects():
    return to_jsonable(analysis.get_all_projects())


@app.get("/api/workspaces")
async def get_workspaces():
    return to_jsonable(analysis.get_workspaces())


@app.get("/api/overview")
async def get_overview():
    return to_jsonable(analysis.get_overview())


@app.get("/api/analysis")
async def get_analysis():
    """Return storage, overview, database, projects and workspaces together."""
    return to_jsonable(analysis.get_full_analysis())


# ── Trash ────────────────────────────────────────────────────────


@app.get("/api/trash")
async def get_trash():
    return to_jsonable(trash.get_trash_items())


@app.delete("/api/trash")
async def clear_trash():
    """Permanently empty the trash."""
    return {"removed": trash.clear_trash()}


@app.delete("/api/trash/{trash_id}")
async def delete_trash_item(trash_id: int):
    return {"deleted": trash.delete_trash_item(trash_id)}


# ── Deletion ─────────────────────────────────────────────────────


@app.post("/api/chats/delete")
async def delete_chat(req: DeleteChatRequest):
    """Move one chat session to the trash."""
    try:
        deleted = mutations.delete_chat(req.project_path, req.chat_id)
    except CursorAnalysisError as e:
        logger.error("Failed to delete chat %s: %s", req.chat_id, e)
        _raise_http(e)
    return {"deleted": deleted}


@app.post("/api/chats/delete-batch")
async def delete_chats_batch(req: DeleteChatsBatchRequest):
    try:
        removed = mutations.delete_chats_batch(req.project_path, req.chat_ids)
    except CursorAnalysisError as e:
        logger.error("Failed to delete chats of %s: %s", req.project_path, e)
        _raise_http(e)
    return {"removed": removed}


@app.post("/api/projects/delete-chats")
async def delete_project_chats(req: DeleteProjectChatsRequest):
    """Move every chat session of a project to the trash."""
    try:
        removed = mutations.delete_project_chats(req.project_path)
    except CursorAnalysisError as e:
        logger.error("Failed to delete chats of %s: %s", req.project_path, e)
        _raise_http(e)
    return {"removed": removed}


@app.delete("/api/workspaces/{workspace_id}/chats")
async def delete_workspace_chats(workspace_id: str):
    """Move every chat session of a workspace to the trash."""
    try:
        removed = mutations.delete_workspace_chats(workspace_id)
    except CursorAnalysisError as e:
        logger.error("Failed to delete chats of workspace %s: %s", workspace_id, e)
        _raise_http(e)
    return {"removed": removed}
