# utils/common.py
"""Common utilities: upload validation and path management"""
import os
import re
from pathlib import Path
from typing import Iterable, Optional

# ⚠️ DO NOT import settings at module level - causes circular import with config.py


# ============= Path Management =============

def get_project_root() -> str:
    """Returns the absolute path to the project's root directory."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_log_file_path() -> str:
    """Creates the log directory if it doesn't exist and returns the full log file path."""
    log_dir = os.path.join(get_project_root(), 'log')
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, 'sadaqa.log')


# ============= File Utilities =============

def get_file_extension(filename: str) -> str:
    """Extracts and normalizes the file extension from a filename."""
    return Path(filename).suffix[1:].lower()


def sanitize_filename(filename: str) -> str:
    """Remove path components and control characters from an uploaded filename."""
    base = os.path.basename(filename.replace("\\", "/"))
    return re.sub(r'[\x00-\x1f]', '', base).strip()[:200]


# ============= Upload Validation =============

def validate_upload(
    filename: Optional[str],
    size: int,
    allowed_extensions: Iterable[str],
    max_size: int,
) -> str:
    """
    Validate an upload before any external call is made.

    Returns the normalized extension. Raises ValidationError with the
    offending field on failure.
    """
    from core.errors import ValidationError  # Lazy import

    if not filename:
        raise ValidationError("No file provided.", field="file")

    allowed = [ext.lower() for ext in allowed_extensions]
    extension = get_file_extension(filename)
    if extension not in allowed:
        raise ValidationError(
            f"Unsupported file extension '.{extension}'. Accepted: {', '.join(allowed)}.",
            field="filename",
        )

    if size == 0:
        raise ValidationError("The uploaded file is empty.", field="file")

    if size > max_size:
        max_mb = max_size // 1024 // 1024
        raise ValidationError(f"File too large. Max size: {max_mb}MB.", field="size")

    return extension
