r"""
Uploads - Validation.

============================================================
PURPOSE
============================================================
Reject malformed uploads before anything is stored.

RULES
- label: ^[a-zA-Z0-9_\-]+$, at most 20 characters
- 1 to max_files files per upload
- extensions: png, jpg, jpeg, pdf (plus webp, gif for execution)
- each file non-empty and at most max_bytes
- labels unique within the upload
- primary label, when given, among the uploaded labels

============================================================
"""

import logging
import re
from typing import Any, Iterable, Optional, Sequence

from core.config import StorageSettings
from core.exceptions import TimeframeLabelError, UploadValidationError

from .types import UploadedFile


logger = logging.getLogger(__name__)


LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+$")
MAX_LABEL_LENGTH = 20

PRE_TRADE_EXTENSIONS = ("png", "jpg", "jpeg", "pdf")
EXECUTION_EXTENSIONS = PRE_TRADE_EXTENSIONS + ("webp", "gif")


def validate_label(label: Any) -> str:
    """
    Check timeframe label syntax.

    Raises:
        TimeframeLabelError: Empty, too long, or outside [a-zA-Z0-9_-]
    """
    if not isinstance(label, str) or not label:
        raise TimeframeLabelError(label, "label is required")
    if len(label) > MAX_LABEL_LENGTH:
        raise TimeframeLabelError(label, f"longer than {MAX_LABEL_LENGTH} characters")
    if not LABEL_PATTERN.match(label):
        raise TimeframeLabelError(label, "only letters, digits, '_' and '-' are allowed")
    return label


def validate_files(
    files: Sequence[UploadedFile],
    settings: Optional[StorageSettings] = None,
    allowed_extensions: Iterable[str] = PRE_TRADE_EXTENSIONS,
    require_files: bool = True,
) -> None:
    """
    Validate an upload batch.

    Args:
        files: Uploaded files in order
        settings: Size and count limits
        allowed_extensions: Accepted lowercase extensions
        require_files: Reject an empty batch

    Raises:
        TimeframeLabelError: Bad label syntax
        UploadValidationError: Count, type, size or duplicate label
    """
    settings = settings or StorageSettings()
    allowed = tuple(allowed_extensions)

    if require_files and not files:
        raise UploadValidationError("At least one screenshot is required", field="files")
    if len(files) > settings.max_files_per_upload:
        raise UploadValidationError(
            f"At most {settings.max_files_per_upload} screenshots per upload",
            field="files",
            value=len(files),
        )

    seen = set()
    for item in files:
        validate_label(item.label)

        if item.label in seen:
            raise UploadValidationError(
                f"Duplicate timeframe label '{item.label}'", field="timeframe", value=item.label,
            )
        seen.add(item.label)

        if item.extension not in allowed:
            raise UploadValidationError(
                f"Unsupported file type '{item.extension or item.filename}' for {item.label}, "
                f"allowed: {', '.join(allowed)}",
                field="file",
                value=item.filename,
            )
        if item.size == 0:
            raise UploadValidationError(f"Empty file for {item.label}", field="file", value=item.filename)
        if item.size > settings.max_upload_bytes:
            raise UploadValidationError(
                f"File for {item.label} exceeds {settings.max_upload_bytes} bytes",
                field="file",
                value=item.size,
            )

    logger.debug(f"Upload validated: {len(files)} file(s) {sorted(seen)}")


def resolve_primary(labels: Sequence[str], primary: Optional[str]) -> str:
    """
    The primary label: the given one if uploaded, else the first uploaded.

    Raises:
        UploadValidationError: primary given but not among labels
    """
    if not labels:
        raise UploadValidationError("At least one screenshot is required", field="files")
    if not primary:
        return labels[0]
    if primary not in labels:
        raise UploadValidationError(
            f"Primary timeframe '{primary}' is not among the uploaded timeframes",
            field="primary_timeframe",
            value=primary,
        )
    return primary


__all__ = [
    "EXECUTION_EXTENSIONS",
    "LABEL_PATTERN",
    "MAX_LABEL_LENGTH",
    "PRE_TRADE_EXTENSIONS",
    "resolve_primary",
    "validate_files",
    "validate_label",
]
