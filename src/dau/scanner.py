"""Directory scanning with a modification-time high-water mark."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Iterator

log = logging.getLogger(__name__)


IMAGE_EXTS = {".png", ".jpg", ".gif"}


class ScanError(RuntimeError):
    pass


def is_eligible(path: Path | str) -> bool:
    """Check the extension against IMAGE_EXTS, ignoring case."""
    return Path(path).suffix.lower() in IMAGE_EXTS


def _raise_walk_error(err: OSError) -> None:
    raise ScanError(f"could not watch path {err.filename}: {err.strerror or err}") from err


def _walk_error_handler(root: Path):
    """Skip subdirectories that vanish or cannot be listed; the root itself is fatal."""
    def _on_error(err: OSError) -> None:
        if isinstance(err, (FileNotFoundError, PermissionError)) and err.filename is not None:
            if Path(err.filename) != root:
                log.warning(f"Skipping {err.filename}: {err.strerror or err}")
                return
        _raise_walk_error(err)
    return _on_error


class ScanCycle:
    """
    One traversal of a directory tree.

    Iterating yields eligible files (regular image files modified strictly
    after the starting mark) in walk order. The new high-water mark is the
    latest mtime among all regular files visited, and only becomes
    available once the traversal has finished.
    """

    def __init__(self, root: Path, mark: float):
        self.root = Path(root)
        self.mark = mark
        self.files_visited = 0

        self._latest = mark
        self._done = False
        self._started = False

    @property
    def high_water_mark(self) -> float:
        if not self._done:
            raise ScanError("high-water mark read before the traversal finished")
        return self._latest

    @property
    def done(self) -> bool:
        return self._done

    def __iter__(self) -> Iterator[Path]:
        if self._started:
            raise ScanError("a scan cycle can only be iterated once")
        self._started = True

        if not self.root.is_dir():
            raise ScanError(f"could not watch path {self.root}: not a directory")

        latest = self.mark
        for dirpath, _dirnames, filenames in os.walk(self.root, onerror=_walk_error_handler(self.root)):
            for filename in filenames:
                path = Path(dirpath) / filename
                try:
                    st = path.lstat()
                except FileNotFoundError:
                    log.debug(f"{path} vanished during scan, skipping")
                    continue
                except OSError as e:
                    raise ScanError(f"could not stat {path}: {e}") from e

                if not stat.S_ISREG(st.st_mode):
                    continue

                self.files_visited += 1
                mtime = st.st_mtime
                if mtime > latest:
                    latest = mtime

                if mtime > self.mark and is_eligible(path):
                    yield path

        # Commit only after a complete walk
        self._latest = latest
        self._done = True


def scan(root: Path | str, mark: float) -> ScanCycle:
    """Start a scan of root against the mark in effect at cycle start."""
    return ScanCycle(Path(root), mark)
