from __future__ import annotations

import re
import uuid
from pathlib import Path

LOGO_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp"})


def _sanitize_filename(filename: str) -> str:
    """Return filename with spaces replaced by underscores and special chars removed.

    Args:
        filename: Original filename string.

    Returns:
        Sanitized filename safe for filesystem storage.
    """
    name = Path(filename).name.replace(" ", "_")
    name = re.sub(r"[^\w.\-]", "", name)
    return name


def save_upload(raw_bytes: bytes, filename: str, uploads_dir: Path) -> Path:
    """Save raw bytes under ``uploads_dir`` with a collision-free name.

    The destination path follows the pattern::

        uploads_dir/{uuid4}_{sanitized_filename}

    Args:
        raw_bytes: File contents to persist.
        filename: Original filename supplied by the uploader.
        uploads_dir: Root directory for all uploaded files.

    Returns:
        Absolute Path to the saved file.
    """
    uploads_dir.mkdir(parents=True, exist_ok=True)
    safe_name = _sanitize_filename(filename) or "upload"
    dest_path = uploads_dir / f"{uuid.uuid4().hex}_{safe_name}"
    dest_path.write_bytes(raw_bytes)
    return dest_path


def save_logo(raw_bytes: bytes, filename: str, uploads_dir: Path) -> str:
    """Persist an organization logo and return its public URL path.

    Raises:
        ValueError: If the file is empty or not an image extension we serve.
    """
    if not raw_bytes:
        raise ValueError("Logo file is empty")
    suffix = Path(filename or "").suffix.lower()
    if suffix not in LOGO_EXTENSIONS:
        raise ValueError(
            f"Unsupported logo type '{suffix or filename}'. "
            f"Allowed: {', '.join(sorted(LOGO_EXTENSIONS))}"
        )
    path = save_upload(raw_bytes, filename, uploads_dir)
    return f"/uploads/{path.name}"
