import io
import logging
from typing import List, Optional

from PIL import Image
from pillow_heif import register_heif_opener

from core.formats import HEIC_EXTENSIONS
from .base_plugin import BasePlugin

logger = logging.getLogger(__name__)

class HeicPlugin(BasePlugin):
    """Transcodes HEIC/HEIF images to JPEG with Pillow and pillow-heif."""

    def __init__(self):
        # Teaches Image.open() to read HEIF containers; idempotent.
        register_heif_opener()
        super().__init__()

    def is_available(self) -> bool:
        return ".heic" in Image.registered_extensions()

    def get_supported_formats(self) -> List[str]:
        return sorted(HEIC_EXTENSIONS)

    def transcode(self, data: bytes, quality: float = 0.5) -> Optional[bytes]:
        """
        Convert HEIC bytes to JPEG bytes.

        *quality* is a 0..1 fraction; it is mapped onto Pillow's 1..95 JPEG scale.
        Multi-image containers yield their primary image.  Returns None when the
        data cannot be decoded.
        """
        jpeg_quality = max(1, min(95, round(quality * 100)))
        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                out = io.BytesIO()
                img.save(out, "JPEG", quality=jpeg_quality)
                return out.getvalue()
        except (OSError, ValueError) as e:
            logger.warning(f"HEIC transcode failed: {e}")
            return None
