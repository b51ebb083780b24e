import os
from enum import Enum
from typing import FrozenSet


class FormatClass(Enum):
    """How a file is turned into something displayable."""
    DIRECT = "direct"
    HEIC = "heic"
    RAW = "raw"
    FALLBACK = "fallback"


DIRECT_EXTENSIONS: FrozenSet[str] = frozenset({"jpg", "jpeg", "png", "webp", "avif"})
HEIC_EXTENSIONS: FrozenSet[str] = frozenset({"heic", "heif"})
RAW_EXTENSIONS: FrozenSet[str] = frozenset({
    "arw",   # Sony
    "cr2",   # Canon
    "cr3",   # Canon (ISOBMFF container)
    "nef",   # Nikon
    "dng",   # Adobe / universal
    "raf",   # Fujifilm
    "orf",   # Olympus / OM System
    "rw2",   # Panasonic
})

ALLOWED_EXTENSIONS: FrozenSet[str] = DIRECT_EXTENSIONS | HEIC_EXTENSIONS | RAW_EXTENSIONS

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "avif": "image/avif",
}


def extension_of(name: str) -> str:
    """Lowercased extension without the dot, or '' when there is none."""
    _, ext = os.path.splitext(name)
    return ext[1:].lower()


def classify(name: str) -> FormatClass:
    ext = extension_of(name)
    if ext in DIRECT_EXTENSIONS:
        return FormatClass.DIRECT
    if ext in HEIC_EXTENSIONS:
        return FormatClass.HEIC
    if ext in RAW_EXTENSIONS:
        return FormatClass.RAW
    return FormatClass.FALLBACK


def is_allowed(name: str) -> bool:
    return extension_of(name) in ALLOWED_EXTENSIONS


def mime_type_for(name: str) -> str:
    """MIME type of a directly renderable file; anything else is served as JPEG."""
    return _MIME_TYPES.get(extension_of(name), "image/jpeg")
