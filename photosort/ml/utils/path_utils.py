"""Path validation helpers used by the organizer and the upload route.

These functions are security-sensitive; keep semantics stable.
"""

from __future__ import annotations

import re
from pathlib import Path

_UNSAFE_SEGMENT = re.compile(r"[^\w\- .]+")


def validate_photo_path(photo_path: str) -> Path:
    """
    Validate and normalize a photo path for safety.

    Prevents:
    - Symlink attacks
    - Non-file paths

    Returns:
        Resolved absolute Path object

    Raises:
        ValueError: If path is invalid or unsafe
    """
    try:
        path = Path(photo_path)

        if "\x00" in str(photo_path):
            raise ValueError("Path contains null bytes")

        resolved = path.resolve()

        # Symlinks are only allowed if they point to a regular file
        if path.is_symlink() and not resolved.is_file():
            raise ValueError("Symlink does not point to a regular file")

        if not resolved.is_file():
            raise ValueError("Path is not a regular file")

        return resolved

    except (OSError, ValueError) as e:
        raise ValueError(f"Invalid photo path '{photo_path}': {e}")


def safe_path_segment(name: str) -> str:
    """
    Turn a free-text tag or key into a single safe folder name.

    Path separators and other special characters become ``_``; names that
    would be empty or point upwards (``.``/``..``) are rejected.

    Raises:
        ValueError: If nothing usable is left
    """
    cleaned = _UNSAFE_SEGMENT.sub("_", (name or "").strip())
    cleaned = cleaned.strip(" .")
    if not cleaned:
        raise ValueError(f"Unusable folder name: {name!r}")
    return cleaned


def safe_filename(filename: str) -> str:
    """Keep letters, digits, dots and dashes; everything else becomes ``_``."""
    base = Path(filename or "").name
    cleaned = re.sub(r"[^a-zA-Z0-9.\-]", "_", base)
    if not cleaned.strip("."):
        raise ValueError(f"Unusable filename: {filename!r}")
    return cleaned


def is_within(path: Path, root: Path) -> bool:
    """True if ``path`` resolves to somewhere inside ``root``."""
    try:
        path.resolve().relative_to(root.resolve())
        return True
    except ValueError:
        return False
