import logging
import os
from enum import Enum
from typing import Dict, List, Optional, Tuple

from core.formats import ALLOWED_EXTENSIONS
from .base_plugin import BasePlugin
from .exiftool_process import is_exiftool_available

logger = logging.getLogger(__name__)


class ThumbnailMode(Enum):
    PREVIEW = "preview"      # large embedded preview
    THUMBNAIL = "thumbnail"  # small EXIF thumbnail


# Tags tried in order for each mode.
_MODE_TAGS: Dict[ThumbnailMode, Tuple[str, ...]] = {
    ThumbnailMode.PREVIEW: ("JpgFromRaw", "PreviewImage"),
    ThumbnailMode.THUMBNAIL: ("ThumbnailImage",),
}


class MetadataThumbnailPlugin(BasePlugin):
    """Pulls embedded previews out of image metadata via exiftool."""

    def is_available(self) -> bool:
        return is_exiftool_available()

    def get_supported_formats(self) -> List[str]:
        return sorted(ALLOWED_EXTENSIONS)

    def extract(self, image_path: str, mode: ThumbnailMode) -> Optional[bytes]:
        """Return embedded image bytes for *mode*, or None if the file has none.

        exiftool failures are logged and reported as "no data".
        """
        et = self._get_exiftool()
        for tag in _MODE_TAGS[mode]:
            try:
                data = et.extract_binary(tag, image_path)
            except (RuntimeError, TimeoutError, OSError) as e:
                logger.warning(f"Failed to extract {tag} from {image_path}: {e}")
                continue
            if data:
                logger.debug(f"Extracted {tag} ({len(data)} bytes) from {os.path.basename(image_path)}")
                return data
        logger.debug(f"No {mode.value} image in metadata of {image_path}")
        return None
