"""
Uploads - Types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UploadedFile:
    """One file of an upload, keyed by its timeframe label."""

    label: str
    """Timeframe label supplied by the trader, e.g. '5min'."""

    filename: str
    """Original filename; only its extension is used."""

    data: bytes = field(repr=False)
    """File content."""

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class TradeUpload:
    """A pre-trade upload: screenshots per timeframe plus trading context."""

    files: List[UploadedFile]
    """Screenshots in upload order."""

    context: Dict[str, Any] = field(default_factory=dict)
    """Loosely-typed trading context (instrument, session_info, ...)."""

    notes: Optional[str] = None
    """Trader notes."""

    primary_timeframe: Optional[str] = None
    """Primary label; the first uploaded file when omitted."""

    timestamp: Optional[datetime] = None
    """Setup time; now when omitted."""

    @property
    def labels(self) -> List[str]:
        return [f.label for f in self.files]


@dataclass(frozen=True)
class StoredFile:
    """A file persisted by a FileStore."""

    path: Path
    size: int
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": str(self.path), "size": self.size, "label": self.label}
