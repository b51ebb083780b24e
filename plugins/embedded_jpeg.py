"""
Embedded JPEG extraction by raw byte scanning.

Most RAW containers (NEF, ARW, CR2, DNG, RAF, ORF, RW2) carry a
camera-rendered JPEG next to the sensor data, usually within the first few
megabytes of the file.  Finding it by scanning for SOI/EOI marker pairs is
far cheaper than a demosaic and works without knowing the container layout.
"""
import logging
from typing import List, NamedTuple, Optional

logger = logging.getLogger(__name__)

SOI = b"\xff\xd8"
EOI = b"\xff\xd9"

# Bytes read from the head of a file before scanning.
SCAN_LIMIT_BYTES = 6 * 1024 * 1024
# A start marker whose end marker lies further away than this is ignored.
MAX_SEGMENT_DISTANCE = 5_000_000
# Segments must be strictly larger than this; rejects the small EXIF thumbnail.
MIN_SEGMENT_SIZE = 50_000


class JpegSegment(NamedTuple):
    start: int
    end: int  # exclusive; points just past the EOI marker

    @property
    def size(self) -> int:
        return self.end - self.start


def find_soi_offsets(buffer: bytes) -> List[int]:
    """Return every offset of an SOI marker pair in *buffer*."""
    offsets = []
    pos = buffer.find(SOI)
    while pos != -1:
        offsets.append(pos)
        pos = buffer.find(SOI, pos + 1)
    return offsets


def find_largest_jpeg_segment(buffer: bytes,
                              max_distance: int = MAX_SEGMENT_DISTANCE,
                              min_size: int = MIN_SEGMENT_SIZE) -> Optional[JpegSegment]:
    """
    Locate the largest SOI..EOI span in *buffer*.

    Each start marker is paired with the first end marker that follows it,
    provided that marker starts no more than *max_distance* bytes past the
    start.  Ties keep the segment found first.
    """
    best: Optional[JpegSegment] = None
    for start in find_soi_offsets(buffer):
        eoi = buffer.find(EOI, start + 2, start + max_distance + len(EOI))
        if eoi == -1:
            continue
        segment = JpegSegment(start, eoi + len(EOI))
        if segment.size > min_size and (best is None or segment.size > best.size):
            best = segment
    if best is not None:
        logger.debug("Largest embedded JPEG: %d bytes at offset %d", best.size, best.start)
    return best


def extract_largest_jpeg(buffer: bytes,
                         max_distance: int = MAX_SEGMENT_DISTANCE,
                         min_size: int = MIN_SEGMENT_SIZE) -> Optional[bytes]:
    """Return the bytes of the largest embedded JPEG, or None if none qualifies."""
    segment = find_largest_jpeg_segment(buffer, max_distance, min_size)
    if segment is None:
        return None
    return bytes(buffer[segment.start:segment.end])
