"""
cursor-analysis error types.
"""

from pathlib import Path
from typing import Optional


class CursorAnalysisError(Exception):
    """Base class for every error raised by cursor-analysis."""


class NotFoundError(CursorAnalysisError):
    pass


class StoreNotFoundError(NotFoundError):
    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class SessionNotFoundError(NotFoundError):
    def __init__(self, chat_id: str):
        super().__init__(f"Chat session not found: {chat_id}")
        self.chat_id = chat_id


class CorruptStoreError(CursorAnalysisError):
    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path
