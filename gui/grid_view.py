import logging
from typing import Dict, List

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QImage, QResizeEvent
from PySide6.QtWidgets import QGridLayout, QScrollArea, QWidget

from core.triage import FileEntry
from .preview_loader import PreviewLoader
from .thumbnail_tile import ThumbnailTile


class GridView(QScrollArea):
    """Scrollable grid of thumbnail tiles laid out in the current sorted order."""

    tileClicked = Signal(int)  # index into the current view

    def __init__(self, loader: PreviewLoader, config_manager=None, parent=None):
        super().__init__(parent)
        self.loader = loader
        self.config_manager = config_manager
        self.spacing = config_manager.get("gui.spacing", 8) if config_manager else 8
        self.column_count = 6
        self._entries: List[FileEntry] = []
        self._tiles: Dict[str, ThumbnailTile] = {}

        self.setWidgetResizable(True)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._container = QWidget()
        self._layout = QGridLayout(self._container)
        self._layout.setSpacing(self.spacing)
        self._layout.setContentsMargins(self.spacing, self.spacing, self.spacing, self.spacing)
        self._layout.setAlignment(Qt.AlignTop | Qt.AlignLeft)
        self.setWidget(self._container)

        self.loader.thumbnailReady.connect(self._on_thumbnail_ready)

    def set_entries(self, entries: List[FileEntry], column_count: int) -> None:
        """Lay out tiles for *entries*; tiles of names still present are reused."""
        self._entries = list(entries)
        self.column_count = column_count
        names = {e.name for e in self._entries}
        for name in list(self._tiles):
            if name not in names:
                self._tiles.pop(name).deleteLater()

        while self._layout.count():
            self._layout.takeAt(0)

        tile_size = self._tile_size()
        for index, entry in enumerate(self._entries):
            tile = self._tiles.get(entry.name)
            if tile is None:
                tile = ThumbnailTile(entry.name, self.config_manager)
                tile.clicked.connect(self._on_tile_clicked)
                self._tiles[entry.name] = tile
                image = self.loader.request_thumbnail(entry)
                if image is not None:
                    tile.set_image(image)
            tile.set_status(entry.status)
            tile.setFixedSize(tile_size, tile_size)
            self._layout.addWidget(tile, index // column_count, index % column_count)
        logging.debug(f"GridView: laid out {len(self._entries)} tiles in {column_count} columns")

    def refresh_statuses(self) -> None:
        for entry in self._entries:
            tile = self._tiles.get(entry.name)
            if tile is not None:
                tile.set_status(entry.status)

    def _tile_size(self) -> int:
        available = self.viewport().width() - self.spacing * (self.column_count + 1)
        return max(32, available // max(1, self.column_count))

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        size = self._tile_size()
        for tile in self._tiles.values():
            tile.setFixedSize(size, size)

    @Slot(str)
    def _on_tile_clicked(self, name: str):
        for index, entry in enumerate(self._entries):
            if entry.name == name:
                self.tileClicked.emit(index)
                return

    @Slot(str, QImage)
    def _on_thumbnail_ready(self, name: str, image: QImage):
        tile = self._tiles.get(name)
        if tile is not None:
            tile.set_image(image)
