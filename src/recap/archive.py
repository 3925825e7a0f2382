"""Archive manager — move-semantics relocation into an append-only archive.

A move copies into place first and removes the source last, so an
interrupted move leaves the file in both locations, never in neither.
"""

from __future__ import annotations

import filecmp
import logging
import os
import tempfile
from pathlib import Path

from recap.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> None:
    """Write *content* to *path* via a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp_handle:
            tmp_handle.write(content)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _atomic_copy(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(dst.parent), prefix=f".{dst.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tmp_handle, src.open("rb") as src_handle:
            while chunk := src_handle.read(1 << 16):
                tmp_handle.write(chunk)
            tmp_handle.flush()
            os.fsync(tmp_handle.fileno())
        os.replace(tmp_path, str(dst))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class ArchiveManager:
    """Sole owner of writes into the archive directory."""

    def __init__(self, archive_root: Path) -> None:
        self.archive_root = archive_root

    @property
    def handoffs_dir(self) -> Path:
        return self.archive_root / "handoffs"

    def source_target(self, src: Path) -> Path:
        return self.archive_root / src.name

    def handoff_target(self, src: Path) -> Path:
        return self.handoffs_dir / src.name

    def check_move(self, src: Path, dst: Path) -> None:
        """Raise what :meth:`move` would raise, without touching anything."""
        if not src.is_file():
            raise NotFoundError(f"Cannot archive missing file: {src}")
        if dst.exists() and not filecmp.cmp(src, dst, shallow=False):
            raise ConflictError(f"Archive target {dst} already holds a different file than {src}")

    def copy(self, src: Path, dst: Path) -> Path:
        """Place a durable copy of *src* at *dst*, leaving *src* untouched."""
        self.check_move(src, dst)
        if dst.exists():
            # Identical copy already archived by an interrupted move.
            logger.info("Archive target %s already matches %s", dst, src)
        else:
            _atomic_copy(src, dst)
            logger.info("Archived %s -> %s", src, dst)
        return dst

    def move(self, src: Path, dst: Path) -> Path:
        """Relocate *src* to *dst*. On return *src* no longer exists."""
        self.copy(src, dst)
        src.unlink()
        return dst

    def entries(self) -> list[Path]:
        """All archived files, oldest name first."""
        if not self.archive_root.is_dir():
            return []
        return sorted(
            p for p in self.archive_root.rglob("*") if p.is_file() and not p.name.startswith(".")
        )
