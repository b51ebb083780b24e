from typing import Optional

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QSize, Qt
from PySide6.QtGui import QImage, QImageReader, QTransform

from core.preview_resolver import Preview


def _apply_orientation(image: QImage, orientation: int) -> QImage:
    """Apply the EXIF Orientation of the source file to an embedded preview."""
    if orientation in (5, 6):
        image = image.transformed(QTransform().rotate(90))
    elif orientation in (7, 8):
        image = image.transformed(QTransform().rotate(270))
    elif orientation == 3:
        image = image.transformed(QTransform().rotate(180))
    if orientation in (2, 5, 7):
        image = image.mirrored(True, False)
    elif orientation == 4:
        image = image.mirrored(False, True)
    return image


def decode_preview(preview: Preview, bound: Optional[int] = None) -> QImage:
    """
    Decode a Preview into a QImage.  With *bound*, the image is decoded
    scaled so its longer side is at most *bound* pixels (JPEG decodes this
    directly at reduced resolution).  Safe to call from worker threads.
    Returns a null QImage when the data cannot be decoded.
    """
    buffer = QBuffer()
    buffer.setData(QByteArray(preview.data))
    buffer.open(QIODevice.ReadOnly)
    reader = QImageReader(buffer)
    # Files that carry their own EXIF orientation are turned by the reader.
    reader.setAutoTransform(preview.orientation == 1)
    if bound:
        size = reader.size()
        if size.isValid() and max(size.width(), size.height()) > bound:
            reader.setScaledSize(size.scaled(QSize(bound, bound), Qt.KeepAspectRatio))
    image = reader.read()
    if image.isNull():
        return image
    if preview.orientation != 1:
        image = _apply_orientation(image, preview.orientation)
    return image
