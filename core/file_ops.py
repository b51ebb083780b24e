# core/file_ops.py
"""Sidecar-aware file handles and moves.

A ``LocalFileHandle`` is the capability a ``FileEntry`` holds on its file:
it can read the file's bytes and move the file (with its XMP sidecar) into
another directory.  Everything else in the core only talks to the
``FileHandle`` protocol.
"""
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)


class FileHandle(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def path(self) -> Path: ...

    def read_bytes(self, limit: Optional[int] = None) -> bytes: ...

    def move_to(self, directory: Path) -> Path: ...


def xmp_sidecar_path(image_path: str) -> str:
    """Return the conventional XMP sidecar path for an image: photo.jpg -> photo.jpg.xmp"""
    return image_path + ".xmp"


def resolve_sidecars(image_path: str) -> List[str]:
    """Return existing sidecar paths for *image_path*."""
    xmp = xmp_sidecar_path(image_path)
    if os.path.exists(xmp):
        return [xmp]
    return []


def dedupe_path(target: Path) -> Path:
    """Return *target*, or ``stem (n).suffix`` for the first n that is free."""
    if not target.exists():
        return target
    n = 1
    while True:
        candidate = target.with_name(f"{target.stem} ({n}){target.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


def move_with_sidecars(path: Path, directory: Path) -> Path:
    """Move an image into *directory*, then its sidecars next to it.

    Image failures propagate.  Sidecar failures are non-fatal: logged, the
    image stays moved.
    """
    target = dedupe_path(directory / path.name)
    shutil.move(str(path), str(target))
    logger.debug(f"Moved {path} -> {target}")

    for sidecar in resolve_sidecars(str(path)):
        sidecar_target = Path(xmp_sidecar_path(str(target)))
        try:
            shutil.move(sidecar, str(sidecar_target))
            logger.debug(f"Moved sidecar: {sidecar}")
        except (OSError, shutil.Error) as e:
            logger.warning(f"Failed to move sidecar {sidecar}: {e}")
    return target


class LocalFileHandle:
    """File handle backed by a path on the local filesystem."""

    def __init__(self, path: Path):
        self._path = Path(path)

    def __repr__(self) -> str:
        return f"LocalFileHandle({str(self._path)!r})"

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    def read_bytes(self, limit: Optional[int] = None) -> bytes:
        """Read the whole file, or only its first *limit* bytes."""
        with open(self._path, "rb") as f:
            return f.read() if limit is None else f.read(limit)

    def move_to(self, directory: Path) -> Path:
        """Move the file into *directory*; the handle follows the file."""
        self._path = move_with_sidecars(self._path, Path(directory))
        return self._path
