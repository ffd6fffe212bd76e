"""Workspace registry discovery.

Each ``workspaceStorage/<id>`` directory may hold a ``state.vscdb`` store and a
``workspace.json`` descriptor. The descriptor is either ``{"folder": <uri>}``
for a single-folder workspace or ``{"workspace": <uri>}`` pointing at a
multi-root ``.code-workspace`` file with a ``folders`` list. Nothing links the
descriptor to the store besides living in the same directory.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator

from .codec import ms_to_datetime

logger = logging.getLogger(__name__)

STORE_FILENAME = "state.vscdb"
DESCRIPTOR_FILENAME = "workspace.json"
MULTI_ROOT_SEPARATOR = " + "

_FILE_SCHEME = "file://"
_TIMESTAMP_MIN_DIGITS = 10


@dataclass
class WorkspaceEntry:
    """A workspaceStorage directory with its resolved project paths."""

    id: str
    storage_dir: Path
    projects: list[str] = field(default_factory=list)
    is_multi_project: bool = False
    created_at: datetime | None = None

    @property
    def db_path(self) -> Path:
        return self.storage_dir / STORE_FILENAME

    @property
    def has_store(self) -> bool:
        return self.db_path.is_file()

    @property
    def project_path(self) -> str | None:
        """The project path of a single-folder workspace, else None."""
        if self.is_multi_project or not self.projects:
            return None
        return self.projects[0]


def normalize_uri(uri: str) -> str:
    """Turn a ``file://`` URI from a descriptor into a plain path string."""
    if uri.startswith(_FILE_SCHEME):
        uri = uri[len(_FILE_SCHEME):]
    return uri.replace("%20", " ")


def extract_created_at(workspace_file: str) -> datetime | None:
    """Parse the creation time from a multi-root workspace file path.

    Untitled multi-root workspaces live under ``Workspaces/<ms-timestamp>/``;
    the first all-digit segment of at least ten digits is taken as that
    timestamp.
    """
    for segment in workspace_file.split("/"):
        if len(segment) >= _TIMESTAMP_MIN_DIGITS and segment.isdigit():
            return ms_to_datetime(int(segment))
    return None


def read_workspace_folders(workspace_file: Path) -> list[str]:
    """Read the folder paths listed in a multi-root workspace file."""
    try:
        data = json.loads(workspace_file.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read workspace file %s: %s", workspace_file, e)
        return []

    folders = data.get("folders") if isinstance(data, dict) else None
    if not isinstance(folders, list):
        return []

    paths = []
    for folder in folders:
        if not isinstance(folder, dict):
            continue
        value = folder.get("path") or folder.get("uri")
        if isinstance(value, str) and value:
            paths.append(normalize_uri(value))
    return paths


def read_workspace_entry(storage_dir: Path) -> WorkspaceEntry:
    """Resolve one workspaceStorage directory from its descriptor."""
    entry = WorkspaceEntry(id=storage_dir.name, storage_dir=storage_dir)

    descriptor = storage_dir / DESCRIPTOR_FILENAME
    if not descriptor.exists():
        return entry
    try:
        data = json.loads(descriptor.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s in %s: %s", DESCRIPTOR_FILENAME, storage_dir, e)
        return entry
    if not isinstance(data, dict):
        return entry

    folder = data.get("folder")
    workspace = data.get("workspace")
    if isinstance(folder, str) and folder:
        entry.projects = [normalize_uri(folder)]
    elif isinstance(workspace, str) and workspace:
        ws_file = normalize_uri(workspace)
        entry.is_multi_project = True
        entry.created_at = extract_created_at(ws_file)
        entry.projects = read_workspace_folders(Path(ws_file))

    return entry


def iter_workspace_entries(storage_root: Path) -> Iterator[WorkspaceEntry]:
    """Yield every workspaceStorage directory, in name order."""
    if not storage_root.is_dir():
        return

    for child in sorted(storage_root.iterdir(), key=lambda p: p.name):
        if not child.is_dir():
            continue
        yield read_workspace_entry(child)


def workspace_label(entry: WorkspaceEntry) -> str:
    """The project path a workspace's sessions are attributed to."""
    if entry.projects:
        return MULTI_ROOT_SEPARATOR.join(entry.projects)
    return f"[workspace] {entry.id}"


def matches_project(entry: WorkspaceEntry, project_path: str) -> bool:
    if not entry.projects:
        return False
    if not entry.is_multi_project:
        return entry.projects[0] == project_path
    return project_path in entry.projects or workspace_label(entry) == project_path


def find_stores_for_project(storage_root: Path, project_path: str) -> list[Path]:
    """Return every existing store whose workspace resolves to ``project_path``.

    The same folder can own several workspaceStorage directories over time
    (e.g. after a reinstall), so all of them are returned. Multi-root
    workspaces are only used when no single-folder workspace matches.
    """
    single, multi = [], []
    for entry in iter_workspace_entries(storage_root):
        if not entry.has_store or not matches_project(entry, project_path):
            continue
        (multi if entry.is_multi_project else single).append(entry.db_path)
    return single or multi
