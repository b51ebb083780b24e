"""
Shared pytest fixtures for FlashCull tests.
"""
import os
import sys
from pathlib import Path
from typing import Optional

# Ensure project root is on path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from PIL import Image

from core.triage import FileEntry, Status


def jpeg_segment(size: int) -> bytes:
    """A fake JPEG of exactly *size* bytes: SOI, zero padding, EOI."""
    assert size >= 4
    return b"\xff\xd8" + b"\x00" * (size - 4) + b"\xff\xd9"


class MockConfigManager:
    """Minimal ConfigManager substitute that accepts a plain dict.

    Only implements the interface used by Session and the resolver.
    """

    def __init__(self, overrides: dict | None = None):
        self._cfg: dict = {
            "ignore_patterns": ["._*"],
            "preview": {"workers": 2, "cache_failures": True},
            "triage": {"default_sort": "name_asc", "default_columns": 6},
            "trash": {"dir_name": "_Trash"},
        }
        if overrides:
            self._cfg.update(overrides)

    def get(self, key: str, default=None):
        keys = key.split(".")
        val = self._cfg
        for k in keys:
            if isinstance(val, dict):
                val = val.get(k)
            else:
                return default
        return val if val is not None else default


class FakeHandle:
    """In-memory FileHandle. ``move_to`` fails when *fail_move* is set."""

    def __init__(self, name: str, data: bytes = b"", fail_move: bool = False):
        self._name = name
        self.data = data
        self.fail_move = fail_move
        self.moved_to: Optional[Path] = None
        self.reads = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        return Path("/virtual") / self._name

    def read_bytes(self, limit: Optional[int] = None) -> bytes:
        self.reads += 1
        return self.data if limit is None else self.data[:limit]

    def move_to(self, directory: Path) -> Path:
        if self.fail_move:
            raise OSError(f"cannot move {self._name}")
        self.moved_to = Path(directory) / self._name
        return self.moved_to


class FakeHeicPlugin:
    available = True

    def __init__(self, result: Optional[bytes] = b"transcoded", error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    def transcode(self, data: bytes, quality: float = 0.5) -> Optional[bytes]:
        self.calls.append(quality)
        if self.error:
            raise self.error
        return self.result


class FakeMetadataPlugin:
    """Returns canned bytes per ThumbnailMode; records the order of calls."""
    available = True

    def __init__(self, results: Optional[dict] = None, error: Optional[Exception] = None):
        self.results = results or {}
        self.error = error
        self.calls = []

    def extract(self, image_path: str, mode) -> Optional[bytes]:
        self.calls.append(mode)
        if self.error:
            raise self.error
        return self.results.get(mode)


def make_entries(*names: str, status: Status = Status.UNREVIEWED):
    return [FileEntry(n, FakeHandle(n), status) for n in names]


@pytest.fixture()
def config():
    return MockConfigManager()


@pytest.fixture()
def photo_dir(tmp_path):
    """A folder with a few small JPEGs, a RAW, a sidecar and some files that must be skipped.

    Yields the pathlib.Path of the folder.
    """
    folder = tmp_path / "shoot"
    folder.mkdir()
    for i in (1, 2, 10):
        Image.new("RGB", (64, 48), color=(i * 20, 80, 120)).save(str(folder / f"IMG_{i}.jpg"), "JPEG")
    (folder / "DSC_0001.NEF").write_bytes(b"II*\x00" + jpeg_segment(60_000))
    (folder / "DSC_0001.NEF.xmp").write_text("<x:xmpmeta/>")
    (folder / "notes.txt").write_text("not a photo")
    (folder / "._IMG_1.jpg").write_bytes(b"\x00\x05\x16\x07")
    (folder / "subdir").mkdir()
    (folder / "subdir" / "nested.jpg").write_bytes(jpeg_segment(100))
    return folder
