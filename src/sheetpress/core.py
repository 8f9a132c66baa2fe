"""Filesystem primitives shared by every stage."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write(path: Path, data: bytes | str) -> None:
    """Write ``data`` to ``path`` so readers never observe a partial file.

    The content goes to a temporary sibling (same directory, so the rename
    stays on one filesystem) and is then renamed over the destination. If
    anything fails before the rename, the temporary file is removed and the
    destination keeps its previous content.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


def write_if_changed(path: Path, content: str) -> bool:
    """Atomically write ``content`` unless the file already holds exactly it.

    Returns:
        True if the file was written, False if it was left untouched.
    """
    if path.exists() and path.read_text(encoding="utf-8", errors="replace") == content:
        logger.debug("unchanged: %s", path)
        return False
    atomic_write(path, content)
    return True
