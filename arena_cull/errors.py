"""Error taxonomy. None of these are fatal to a culling session."""
from pathlib import Path
from typing import Optional


class CullError(Exception):
    """Base class for all arena_cull errors"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ScanError(CullError):
    """Folder missing or unreadable; the load is aborted"""


class DecodeError(CullError):
    """Corrupt or unsupported image; the record keeps no raster"""


class TagWriteError(CullError):
    """Color label could not be persisted; in-memory status still wins"""
