import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.file_ops import FileHandle
from core.formats import FormatClass, classify, mime_type_for
from plugins.base_plugin import BasePlugin
from plugins.embedded_jpeg import (
    MAX_SEGMENT_DISTANCE, MIN_SEGMENT_SIZE, SCAN_LIMIT_BYTES, extract_largest_jpeg,
)
from plugins.heic_plugin import HeicPlugin
from plugins.metadata_thumbnail import MetadataThumbnailPlugin, ThumbnailMode

logger = logging.getLogger(__name__)

# Bytes read from the head of a RAW file to find its EXIF orientation.
ORIENTATION_SCAN_BYTES = 256 * 1024


class PreviewSource(Enum):
    DIRECT = "direct"
    TRANSCODE = "transcode"
    EMBEDDED_JPEG = "embedded_jpeg"
    METADATA_PREVIEW = "metadata_preview"
    METADATA_THUMBNAIL = "metadata_thumbnail"


@dataclass(frozen=True)
class Preview:
    """A displayable, self-contained encoded image for one file."""
    name: str
    data: bytes
    mime_type: str
    source: PreviewSource
    orientation: int = 1

    @property
    def size(self) -> int:
        return len(self.data)


class PreviewResolver:
    """
    Produces a Preview for a single file by walking the fallback chain:
    direct render, HEIC transcode, embedded JPEG scan, metadata preview,
    metadata thumbnail.  "No preview" is returned as None, never raised.
    """

    def __init__(self,
                 heic_plugin: Optional[HeicPlugin] = None,
                 metadata_plugin: Optional[MetadataThumbnailPlugin] = None,
                 heic_quality: float = 0.5,
                 scan_limit: int = SCAN_LIMIT_BYTES,
                 max_segment_distance: int = MAX_SEGMENT_DISTANCE,
                 min_segment_size: int = MIN_SEGMENT_SIZE):
        self.heic_plugin = heic_plugin
        self.metadata_plugin = metadata_plugin
        self.heic_quality = heic_quality
        self.scan_limit = scan_limit
        self.max_segment_distance = max_segment_distance
        self.min_segment_size = min_segment_size

    @classmethod
    def from_config(cls, config_manager) -> "PreviewResolver":
        """Build a resolver with the real collaborators and configured thresholds."""
        return cls(
            heic_plugin=HeicPlugin(),
            metadata_plugin=MetadataThumbnailPlugin(),
            heic_quality=config_manager.get("preview.heic_quality", 0.5),
            scan_limit=config_manager.get("preview.scan_limit_bytes", SCAN_LIMIT_BYTES),
            max_segment_distance=config_manager.get("preview.max_segment_distance", MAX_SEGMENT_DISTANCE),
            min_segment_size=config_manager.get("preview.min_segment_size", MIN_SEGMENT_SIZE),
        )

    def resolve(self, name: str, handle: FileHandle) -> Optional[Preview]:
        format_class = classify(name)

        if format_class is FormatClass.DIRECT:
            return self._resolve_direct(name, handle)

        if format_class is FormatClass.HEIC:
            preview = self._try_transcode(name, handle)
            if preview:
                return preview

        preview = self._try_embedded_jpeg(name, handle)
        if preview:
            return preview

        for mode, source in ((ThumbnailMode.PREVIEW, PreviewSource.METADATA_PREVIEW),
                             (ThumbnailMode.THUMBNAIL, PreviewSource.METADATA_THUMBNAIL)):
            preview = self._try_metadata(name, handle, mode, source)
            if preview:
                return preview

        logger.info(f"No preview available for {name}")
        return None

    # ------------------------------------------------------------------
    # Chain steps
    # ------------------------------------------------------------------

    def _resolve_direct(self, name: str, handle: FileHandle) -> Optional[Preview]:
        try:
            data = handle.read_bytes()
        except OSError as e:
            logger.error(f"Could not read {name}: {e}")
            return None
        return Preview(name, data, mime_type_for(name), PreviewSource.DIRECT)

    def _try_transcode(self, name: str, handle: FileHandle) -> Optional[Preview]:
        if not self._usable(self.heic_plugin):
            return None
        try:
            data = self.heic_plugin.transcode(handle.read_bytes(), self.heic_quality)
        except Exception as e:  # why: a failed transcode falls through to the byte scan
            logger.warning(f"HEIC transcode of {name} failed: {e}")
            return None
        if not data:
            return None
        return Preview(name, data, "image/jpeg", PreviewSource.TRANSCODE)

    def _try_embedded_jpeg(self, name: str, handle: FileHandle) -> Optional[Preview]:
        try:
            buffer = handle.read_bytes(self.scan_limit)
            data = extract_largest_jpeg(buffer, self.max_segment_distance, self.min_segment_size)
        except Exception as e:  # why: malformed containers must not abort the chain
            logger.warning(f"Embedded JPEG scan of {name} failed: {e}")
            return None
        if not data:
            logger.debug(f"No embedded JPEG large enough in {name}")
            return None
        orientation = BasePlugin.scan_exif_orientation(buffer[:ORIENTATION_SCAN_BYTES])
        return Preview(name, data, "image/jpeg", PreviewSource.EMBEDDED_JPEG, orientation)

    def _try_metadata(self, name: str, handle: FileHandle,
                      mode: ThumbnailMode, source: PreviewSource) -> Optional[Preview]:
        if not self._usable(self.metadata_plugin):
            return None
        try:
            data = self.metadata_plugin.extract(str(handle.path), mode)
        except Exception as e:  # why: collaborator errors count as "no data" for this step
            logger.warning(f"Metadata {mode.value} extraction for {name} failed: {e}")
            return None
        if not data:
            return None
        return Preview(name, data, "image/jpeg", source, self._orientation_of(handle))

    @staticmethod
    def _usable(plugin: Optional[BasePlugin]) -> bool:
        return plugin is not None and getattr(plugin, "available", True)

    @staticmethod
    def _orientation_of(handle: FileHandle) -> int:
        try:
            return BasePlugin.scan_exif_orientation(handle.read_bytes(ORIENTATION_SCAN_BYTES))
        except OSError:
            return 1
