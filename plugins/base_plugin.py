import logging
import struct
import threading
from abc import ABC, abstractmethod
from typing import List

from plugins.exiftool_process import ExifToolProcess

logger = logging.getLogger(__name__)


class BasePlugin(ABC):
    """Base class for the external collaborators used to build previews."""

    def __init__(self):
        self.available = self.is_available()
        if self.available:
            logger.info(f"Plugin {self.__class__.__name__} loaded successfully")
        else:
            logger.warning(f"Plugin {self.__class__.__name__} not available - missing dependencies")

    @abstractmethod
    def is_available(self) -> bool:
        """Check if all required dependencies for this plugin are available."""
        pass

    @abstractmethod
    def get_supported_formats(self) -> List[str]:
        """Return list of handled file extensions (lowercase, without dots)."""
        pass

    # Thread-local storage for per-thread ExifToolProcess instances.
    _local = threading.local()

    def _get_exiftool(self) -> ExifToolProcess:
        """Return (or lazily create) the per-thread ExifToolProcess."""
        if not hasattr(self._local, "proc"):
            self._local.proc = ExifToolProcess()
        return self._local.proc

    @staticmethod
    def scan_exif_orientation(buf: bytes) -> int:
        """
        Fast binary scan for the EXIF Orientation tag (IFD entry 0x0112, SHORT,
        count 1) in either byte order.  Returns the orientation value, or 1 if
        it is not found or out of range.
        """
        for tag_sig, fmt in ((b"\x12\x01\x03\x00\x01\x00\x00\x00", "<H"),
                             (b"\x01\x12\x00\x03\x00\x00\x00\x01", ">H")):
            pos = buf.find(tag_sig)
            if pos == -1:
                continue
            try:
                value = struct.unpack(fmt, buf[pos + 8: pos + 10])[0]
            except struct.error:
                continue
            if 1 <= value <= 8:
                return value
        return 1
