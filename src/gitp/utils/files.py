"""Filesystem helpers."""

from __future__ import annotations

import os
from pathlib import Path


def atomic_write_text(path: Path, content: str) -> None:
    """Replace the file behind ``path`` with ``content`` in one rename.

    A symlinked ``path`` (dotfile managers) is followed, so the link stays
    in place and its target receives the new content. The previous file
    stays intact until the new content is fully on disk.
    """
    target = path.resolve()
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_name(f".{target.name}.tmp-{os.getpid()}")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
        try:
            dir_fd = os.open(target.parent, os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError:
            # Directory fsync is unsupported on some platforms.
            pass
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
