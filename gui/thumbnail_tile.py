from typing import Optional

from PySide6.QtCore import QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPaintEvent, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from core.triage import Status


class ThumbnailTile(QWidget):
    """One square grid cell showing a placeholder, an error mark or the image, with a status badge."""

    clicked = Signal(str)

    def __init__(self, name: str, config_manager=None, parent=None):
        super().__init__(parent)
        self.name = name
        self.status = Status.UNREVIEWED
        self.selected = False
        self._image: Optional[QImage] = None
        self._pixmap: Optional[QPixmap] = None
        self._failed = False

        get = config_manager.get if config_manager else (lambda key, default=None: default)
        self._keep_color = QColor(get("gui.keep_color", "#22c55e"))
        self._reject_color = QColor(get("gui.reject_color", "#ef4444"))
        self._select_color = QColor(get("gui.select_border_color", "#3b82f6"))
        self._background = QColor(get("gui.panel_color", "#1a1a1a"))
        self._border_width = get("gui.border_width", 2)
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip(name)

    def set_image(self, image: QImage) -> None:
        """Show *image*; a null image means the preview is unavailable."""
        self._failed = image.isNull()
        self._image = None if self._failed else image
        self._pixmap = None
        self.update()

    def set_status(self, status: Status) -> None:
        if status is not self.status:
            self.status = status
            self.update()

    def set_selected(self, selected: bool) -> None:
        if selected != self.selected:
            self.selected = selected
            self.update()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.name)

    def _scaled_pixmap(self) -> Optional[QPixmap]:
        if self._image is None:
            return None
        if self._pixmap is None or self._pixmap.size() != self.size():
            scaled = self._image.scaled(self.size(), Qt.KeepAspectRatioByExpanding, Qt.SmoothTransformation)
            x = (scaled.width() - self.width()) // 2
            y = (scaled.height() - self.height()) // 2
            self._pixmap = QPixmap.fromImage(scaled.copy(x, y, self.width(), self.height()))
        return self._pixmap

    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), self._background)

        pixmap = self._scaled_pixmap()
        if pixmap is not None:
            if self.status is Status.REJECT:
                painter.setOpacity(0.4)
            painter.drawPixmap(0, 0, pixmap)
            painter.setOpacity(1.0)
        else:
            painter.setPen(QColor("#6b7280"))
            painter.drawText(self.rect(), Qt.AlignCenter, "Error" if self._failed else "…")

        if self.status is not Status.UNREVIEWED:
            color = self._keep_color if self.status is Status.KEEP else self._reject_color
            painter.setPen(Qt.NoPen)
            painter.setBrush(color)
            radius = max(5, self.width() // 16)
            painter.drawEllipse(self.width() - 3 * radius, radius, 2 * radius, 2 * radius)

        if self.selected or self.status is Status.KEEP:
            color = self._select_color if self.selected else self._keep_color
            pen = QPen(color, self._border_width)
            painter.setPen(pen)
            painter.setBrush(Qt.NoBrush)
            half = self._border_width / 2
            painter.drawRect(QRectF(self.rect()).adjusted(half, half, -half, -half))
        painter.end()
