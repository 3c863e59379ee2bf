"""Storage key generation and normalisation.

Keys are relative POSIX-style paths such as
``2026/10/3f2a...-exam_paper.pdf``. They never contain an absolute
host path, a drive letter, or ``..`` segments, so a key written on one
machine resolves the same way on any other.
"""

import os
import re
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('../../exam.pdf')
        'exam.pdf'
        >>> sanitize_filename('final exam (v2).pdf')
        'final_exam_v2_.pdf'
    """
    # Remove path components, including Windows-style ones
    filename = os.path.basename((filename or "").replace("\\", "/"))

    # Replace problematic characters with underscore
    filename = re.sub(r'[^\w\s.-]', '_', filename)

    # Collapse multiple spaces/underscores
    filename = re.sub(r'[\s_]+', '_', filename)

    filename = filename.lstrip(".")
    if not filename:
        filename = "paper.pdf"

    # Trim to 200 chars so the full key stays well under common limits
    if len(filename) > 200:
        name, ext = os.path.splitext(filename)
        filename = name[:200 - len(ext)] + ext

    return filename


def generate_storage_key(filename: str, now: Optional[datetime] = None) -> str:
    """Generate a fresh key in format: {year}/{month}/{uuid}-{filename}

    Every call yields a distinct key, so a replacement upload never
    overwrites the blob it supersedes.
    """
    now = now or datetime.now(timezone.utc)
    return f"{now.year}/{now.month:02d}/{uuid.uuid4().hex}-{sanitize_filename(filename)}"


def normalize_storage_key(raw: str, known_roots: Iterable[str] = ()) -> str:
    """Turn a stored reference into a clean relative key.

    Backslashes become forward slashes. A leading known root (the upload
    directory or the public URL prefix) is stripped, which converts legacy
    references such as ``/uploads/papers/<file>`` into plain keys.

    Raises:
        ValueError: If the reference is empty, absolute after stripping the
            known roots, or contains a parent-directory segment
    """
    if not raw or not raw.strip():
        raise ValueError("Storage key cannot be empty")

    key = raw.strip().replace("\\", "/")

    for root in known_roots:
        if not root:
            continue
        root = root.replace("\\", "/").rstrip("/")
        if key == root:
            raise ValueError(f"Storage key points at the storage root: {raw}")
        if key.startswith(root + "/"):
            key = key[len(root) + 1:]
            break

    if key.startswith("/") or _DRIVE_LETTER.match(key):
        raise ValueError(f"Storage key must be relative, got absolute path: {raw}")

    segments = [segment for segment in key.split("/") if segment not in ("", ".")]
    if any(segment == ".." for segment in segments):
        raise ValueError(f"Storage key contains path traversal: {raw}")
    if not segments:
        raise ValueError(f"Storage key is empty after normalisation: {raw}")

    return "/".join(segments)
