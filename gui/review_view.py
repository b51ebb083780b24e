import logging
from concurrent.futures import Future
from typing import Dict, List, Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QImage, QKeyEvent, QKeySequence, QPixmap, QResizeEvent
from PySide6.QtWidgets import (
    QHBoxLayout, QLabel, QPushButton, QScrollArea, QSizePolicy, QVBoxLayout, QWidget,
)

from config.hotkeys import ReviewAction, build_key_map
from core.navigation import NavigationController
from core.triage import Status
from .image_utils import decode_preview
from .preview_loader import PreviewLoader
from .thumbnail_tile import ThumbnailTile

FILMSTRIP_TILE = 64
FULL_VIEW_BOUND = 4096

_STATUS_LABELS = {
    Status.UNREVIEWED: "UNREVIEWED",
    Status.KEEP: "KEEP",
    Status.REJECT: "REJECT",
}


class ReviewView(QWidget):
    """
    Single-image viewer with a filmstrip.  Owns its keyboard handling: keys
    are only interpreted while this widget has focus, so nothing leaks into
    the grid once the viewer is closed.
    """

    closeRequested = Signal()
    statusChanged = Signal(str)
    _fullDecoded = Signal(str, QImage)

    def __init__(self, navigation: NavigationController, loader: PreviewLoader,
                 config_manager=None, parent=None):
        super().__init__(parent)
        self.navigation = navigation
        self.loader = loader
        self.config_manager = config_manager
        hotkeys = config_manager.get("hotkeys", {}) if config_manager else {}
        self.key_map: Dict[str, ReviewAction] = build_key_map(hotkeys)

        self._current_name: Optional[str] = None
        self._current_image: Optional[QImage] = None
        self._active = False
        self._film_names: List[str] = []
        self._film_tiles: Dict[str, ThumbnailTile] = {}

        self.setFocusPolicy(Qt.StrongFocus)
        self._build_layout()
        self._fullDecoded.connect(self._on_full_decoded)
        self.loader.thumbnailReady.connect(self._on_thumbnail_ready)

    def _build_layout(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(12, 6, 12, 6)
        self._close_button = QPushButton("Close")
        self._close_button.setFocusPolicy(Qt.NoFocus)
        self._close_button.clicked.connect(self.closeRequested.emit)
        header_layout.addWidget(self._close_button)
        self._name_label = QLabel()
        header_layout.addWidget(self._name_label, 1)
        self._reset_button = QPushButton("Reset")
        self._reset_button.setToolTip("Reset (Backspace)")
        self._reset_button.setFocusPolicy(Qt.NoFocus)
        self._reset_button.clicked.connect(lambda: self._mark(Status.UNREVIEWED))
        header_layout.addWidget(self._reset_button)
        self._status_label = QLabel()
        header_layout.addWidget(self._status_label)
        layout.addWidget(header)

        self._image_label = QLabel()
        self._image_label.setAlignment(Qt.AlignCenter)
        self._image_label.setSizePolicy(QSizePolicy.Ignored, QSizePolicy.Ignored)
        layout.addWidget(self._image_label, 1)

        self._filmstrip = QScrollArea()
        self._filmstrip.setFixedHeight(FILMSTRIP_TILE + 24)
        self._filmstrip.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._filmstrip.setFocusPolicy(Qt.NoFocus)
        self._film_container = QWidget()
        self._film_layout = QHBoxLayout(self._film_container)
        self._film_layout.setContentsMargins(4, 4, 4, 4)
        self._film_layout.setSpacing(4)
        self._film_layout.setAlignment(Qt.AlignLeft)
        self._filmstrip.setWidget(self._film_container)
        self._filmstrip.setWidgetResizable(True)
        layout.addWidget(self._filmstrip)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> None:
        self._active = True
        self.refresh()
        self.setFocus()

    def deactivate(self) -> None:
        """Stop caring about pending loads; late results are dropped."""
        self._active = False
        self._current_name = None
        self._current_image = None
        self._image_label.clear()

    def refresh(self) -> None:
        """Re-read the selected entry and the view order from the navigation state."""
        if not self._active:
            return
        entry = self.navigation.selected_entry
        if entry is None:
            self.closeRequested.emit()
            return

        self._name_label.setText(entry.name)
        self._status_label.setText(_STATUS_LABELS[entry.status])
        self._rebuild_filmstrip()

        if entry.name != self._current_name:
            self._current_name = entry.name
            self._current_image = None
            self._image_label.setText("Loading...")
            self.loader.decode_when_done(self.loader.request_full(entry), self._decode_full, entry.name)

    def _rebuild_filmstrip(self) -> None:
        view = self.navigation.view()
        names = [e.name for e in view]
        if names != self._film_names:
            for tile in self._film_tiles.values():
                tile.deleteLater()
            self._film_tiles.clear()
            while self._film_layout.count():
                self._film_layout.takeAt(0)
            for entry in view:
                tile = ThumbnailTile(entry.name, self.config_manager)
                tile.setFixedSize(FILMSTRIP_TILE, FILMSTRIP_TILE)
                tile.clicked.connect(self._on_film_clicked)
                image = self.loader.request_thumbnail(entry)
                if image is not None:
                    tile.set_image(image)
                self._film_layout.addWidget(tile)
                self._film_tiles[entry.name] = tile
            self._film_names = names

        for index, entry in enumerate(view):
            tile = self._film_tiles[entry.name]
            tile.set_status(entry.status)
            tile.set_selected(index == self.navigation.selected_index)
        current = self._film_tiles.get(self._film_names[self.navigation.selected_index]) \
            if self.navigation.selected_index is not None else None
        if current is not None:
            self._filmstrip.ensureWidgetVisible(current, FILMSTRIP_TILE * 3, 0)

    # ------------------------------------------------------------------
    # Image loading
    # ------------------------------------------------------------------

    def _decode_full(self, name: str, future: Future) -> None:
        preview = future.result()
        image = decode_preview(preview, FULL_VIEW_BOUND) if preview is not None else QImage()
        self._fullDecoded.emit(name, image)

    @Slot(str, QImage)
    def _on_full_decoded(self, name: str, image: QImage):
        if not self._active or name != self._current_name:
            logging.debug(f"ReviewView: dropping stale preview for {name}")
            return
        if image.isNull():
            self._current_image = None
            self._image_label.setText("Preview Unavailable")
            return
        self._current_image = image
        self._show_scaled()

    def _show_scaled(self) -> None:
        if self._current_image is None:
            return
        pixmap = QPixmap.fromImage(self._current_image.scaled(
            self._image_label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation))
        self._image_label.setPixmap(pixmap)

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self._show_scaled()

    @Slot(str, QImage)
    def _on_thumbnail_ready(self, name: str, image: QImage):
        tile = self._film_tiles.get(name)
        if tile is not None:
            tile.set_image(image)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def keyPressEvent(self, event: QKeyEvent) -> None:
        sequence = QKeySequence(event.key()).toString()
        action = self.key_map.get(sequence)
        if action is None:
            super().keyPressEvent(event)
            return
        event.accept()
        if action is ReviewAction.NEXT_IMAGE:
            self._navigate(1)
        elif action is ReviewAction.PREVIOUS_IMAGE:
            self._navigate(-1)
        elif action is ReviewAction.MARK_KEEP:
            self._mark(Status.KEEP)
        elif action is ReviewAction.MARK_REJECT:
            self._mark(Status.REJECT)
        elif action is ReviewAction.MARK_UNREVIEWED:
            self._mark(Status.UNREVIEWED)
        elif action is ReviewAction.CLOSE_REVIEW:
            self.closeRequested.emit()

    def _navigate(self, step: int) -> None:
        moved = self.navigation.next() if step > 0 else self.navigation.previous()
        if moved:
            self.refresh()

    @Slot(str)
    def _on_film_clicked(self, name: str):
        for index, entry in enumerate(self.navigation.view()):
            if entry.name == name:
                if self.navigation.navigate(index):
                    self.refresh()
                return

    def _mark(self, status: Status) -> None:
        entry = self.navigation.mark_selected(status)
        if entry is not None:
            self.statusChanged.emit(entry.name)
            self.refresh()
