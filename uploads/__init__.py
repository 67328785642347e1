"""
Uploads Package.

Upload validation and screenshot storage.
"""

from .file_store import FileStore, LocalFileStore
from .types import StoredFile, TradeUpload, UploadedFile
from .validation import (
    EXECUTION_EXTENSIONS,
    PRE_TRADE_EXTENSIONS,
    resolve_primary,
    validate_files,
    validate_label,
)

__all__ = [
    "FileStore",
    "LocalFileStore",
    "StoredFile",
    "TradeUpload",
    "UploadedFile",
    "EXECUTION_EXTENSIONS",
    "PRE_TRADE_EXTENSIONS",
    "resolve_primary",
    "validate_files",
    "validate_label",
]
