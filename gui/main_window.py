import logging
from typing import Optional

from PySide6.QtCore import Qt, Slot, QSettings
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QComboBox, QFileDialog, QHBoxLayout, QLabel, QMainWindow, QMessageBox, QPushButton,
    QSlider, QStackedWidget, QVBoxLayout, QWidget,
)

from core.navigation import MAX_COLUMNS, MIN_COLUMNS
from core.preview_resolver import PreviewResolver
from core.session import FolderOpenError, Session
from core.trash import TrashStatus
from core.triage import SortMode, Status
from .grid_view import GridView
from .preview_loader import PreviewLoader
from .review_view import ReviewView

_SORT_LABELS = [
    (SortMode.NAME_ASC, "Name (A-Z)"),
    (SortMode.NAME_DESC, "Name (Z-A)"),
    (SortMode.STATUS, "Status"),
]


class MainWindow(QMainWindow):
    """Idle page, grid page and review page of one FlashCull window."""

    def __init__(self, config_manager, resolver: PreviewResolver):
        super().__init__()
        self.config_manager = config_manager
        self.resolver = resolver
        self.session: Optional[Session] = None
        self.loader: Optional[PreviewLoader] = None
        self.grid_view: Optional[GridView] = None
        self.review_view: Optional[ReviewView] = None

        self.stacked_widget = QStackedWidget()
        self.setCentralWidget(self.stacked_widget)
        self.setStyleSheet(f"background-color: {config_manager.get('gui.background_color', '#0f0f0f')};"
                           " color: white;")

        self.idle_page = self._build_idle_page()
        self.stacked_widget.addWidget(self.idle_page)
        self.grid_page = QWidget()
        self._grid_page_layout = QVBoxLayout(self.grid_page)
        self._grid_page_layout.setContentsMargins(0, 0, 0, 0)
        self._grid_page_layout.addWidget(self._build_header())
        self._grid_page_layout.addWidget(self._build_toolbar())
        self.stacked_widget.addWidget(self.grid_page)

        self.setWindowTitle("FlashCull")
        settings = QSettings("FlashCull", "MainWindow")
        geometry = settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)
        else:
            self.resize(config_manager.get("gui.window_width", 1200),
                        config_manager.get("gui.window_height", 800))

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_idle_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignCenter)
        title = QLabel("FlashCull")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 48px; font-weight: 900;")
        layout.addWidget(title)
        subtitle = QLabel("Local-First. Privacy-First. Blazing Fast.")
        subtitle.setAlignment(Qt.AlignCenter)
        subtitle.setStyleSheet("color: #9ca3af; font-size: 16px;")
        layout.addWidget(subtitle)
        open_button = QPushButton("Open Folder")
        open_button.setStyleSheet("background: white; color: black; padding: 12px 28px;"
                                  " font-weight: bold; border-radius: 10px;")
        open_button.clicked.connect(self.choose_folder)
        layout.addWidget(open_button, 0, Qt.AlignCenter)
        return page

    def _build_header(self) -> QWidget:
        header = QWidget()
        layout = QHBoxLayout(header)
        layout.setContentsMargins(16, 8, 16, 8)
        self._folder_label = QLabel()
        self._folder_label.setStyleSheet("font-weight: bold; font-size: 16px;")
        layout.addWidget(self._folder_label, 1)
        self._counts_label = QLabel()
        self._counts_label.setStyleSheet("color: #9ca3af;")
        layout.addWidget(self._counts_label)
        self._trash_button = QPushButton()
        reject_color = self.config_manager.get("gui.reject_color", "#ef4444")
        self._trash_button.setStyleSheet(f"background: {reject_color}; color: white;"
                                         " padding: 6px 14px; font-weight: bold; border-radius: 6px;")
        self._trash_button.clicked.connect(self.move_rejects_to_trash)
        layout.addWidget(self._trash_button)
        close_button = QPushButton("Close")
        close_button.clicked.connect(self.close_folder)
        layout.addWidget(close_button)
        return header

    def _build_toolbar(self) -> QWidget:
        toolbar = QWidget()
        layout = QHBoxLayout(toolbar)
        layout.setContentsMargins(16, 4, 16, 4)
        layout.addWidget(QLabel("Sort By"))
        self._sort_combo = QComboBox()
        for mode, label in _SORT_LABELS:
            self._sort_combo.addItem(label, mode.value)
        self._sort_combo.currentIndexChanged.connect(self._on_sort_changed)
        layout.addWidget(self._sort_combo)
        layout.addStretch(1)
        layout.addWidget(QLabel("SIZE"))
        self._column_slider = QSlider(Qt.Horizontal)
        self._column_slider.setRange(MIN_COLUMNS, MAX_COLUMNS)
        self._column_slider.setSingleStep(1)
        self._column_slider.setFixedWidth(140)
        self._column_slider.valueChanged.connect(self._on_columns_changed)
        layout.addWidget(self._column_slider)
        return toolbar

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @Slot()
    def choose_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Open Folder")
        if folder:
            self.open_folder(folder)

    def open_folder(self, folder: str) -> bool:
        self.close_folder()
        try:
            session = Session.open(folder, self.config_manager, self.resolver)
        except FolderOpenError as e:
            logging.error(f"Could not open folder {folder}: {e}")
            QMessageBox.warning(self, "Folder Access Error", str(e))
            self.stacked_widget.setCurrentWidget(self.idle_page)
            return False

        self.session = session
        self.loader = PreviewLoader(session, self)
        self.grid_view = GridView(self.loader, self.config_manager)
        self.grid_view.tileClicked.connect(self._open_review)
        self._grid_page_layout.addWidget(self.grid_view, 1)
        self.review_view = ReviewView(session.navigation, self.loader, self.config_manager)
        self.review_view.closeRequested.connect(self._close_review)
        self.review_view.statusChanged.connect(self._on_status_changed)
        self.stacked_widget.addWidget(self.review_view)

        nav = session.navigation
        self._sort_combo.blockSignals(True)
        self._sort_combo.setCurrentIndex(self._sort_combo.findData(nav.sort_mode.value))
        self._sort_combo.blockSignals(False)
        self._column_slider.blockSignals(True)
        self._column_slider.setValue(nav.column_count)
        self._column_slider.blockSignals(False)

        self._folder_label.setText(str(session.root.path))
        self.stacked_widget.setCurrentWidget(self.grid_page)
        self._refresh_grid()
        logging.info(f"Opened {folder} with {len(session.store)} photos")
        return True

    @Slot()
    def close_folder(self):
        if self.session is None:
            return
        if self.review_view is not None:
            self.review_view.deactivate()
            self.stacked_widget.removeWidget(self.review_view)
            self.review_view.deleteLater()
            self.review_view = None
        if self.grid_view is not None:
            self._grid_page_layout.removeWidget(self.grid_view)
            self.grid_view.deleteLater()
            self.grid_view = None
        if self.loader is not None:
            self.loader.deleteLater()
            self.loader = None
        self.session.close()
        self.session = None
        self.stacked_widget.setCurrentWidget(self.idle_page)

    # ------------------------------------------------------------------
    # Grid
    # ------------------------------------------------------------------

    def _refresh_grid(self):
        if self.session is None or self.grid_view is None:
            return
        nav = self.session.navigation
        self.grid_view.set_entries(nav.view(), nav.column_count)
        self._update_counts()

    def _update_counts(self):
        counts = self.session.store.counts()
        self._counts_label.setText(
            f"{counts[Status.KEEP]} keep · {counts[Status.REJECT]} reject · "
            f"{counts[Status.UNREVIEWED]} unreviewed")
        rejects = counts[Status.REJECT]
        self._trash_button.setText(f"Move {rejects} to Trash")
        self._trash_button.setVisible(rejects > 0)

    @Slot(int)
    def _on_sort_changed(self, index: int):
        if self.session is None:
            return
        self.session.navigation.set_sort_mode(SortMode(self._sort_combo.itemData(index)))
        self._refresh_grid()

    @Slot(int)
    def _on_columns_changed(self, value: int):
        if self.session is None:
            return
        self.session.navigation.set_column_count(value)
        self._refresh_grid()

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    @Slot(int)
    def _open_review(self, index: int):
        if self.session is None or not self.session.navigation.open(index):
            return
        self.stacked_widget.setCurrentWidget(self.review_view)
        self.review_view.activate()

    @Slot()
    def _close_review(self):
        if self.session is None:
            return
        self.session.navigation.close()
        self.review_view.deactivate()
        self.stacked_widget.setCurrentWidget(self.grid_page)
        self._refresh_grid()

    @Slot(str)
    def _on_status_changed(self, name: str):
        if self.grid_view is not None:
            self.grid_view.refresh_statuses()
        self._update_counts()

    # ------------------------------------------------------------------
    # Trash
    # ------------------------------------------------------------------

    def _confirm_trash(self, count: int) -> bool:
        dir_name = self.session.root.trash_dir_name
        answer = QMessageBox.question(self, "Move to Trash", f"Move {count} files to '{dir_name}'?")
        return answer == QMessageBox.Yes

    @Slot()
    def move_rejects_to_trash(self):
        if self.session is None:
            return
        result = self.session.move_rejects_to_trash(self._confirm_trash)
        if result.status is TrashStatus.FAILED:
            QMessageBox.warning(self, "Move to Trash", "Error moving files.")
        elif result.succeeded:
            for name in result.moved:
                self.loader.forget(name)
        self._refresh_grid()

    def closeEvent(self, event: QCloseEvent):
        settings = QSettings("FlashCull", "MainWindow")
        settings.setValue("geometry", self.saveGeometry())
        self.close_folder()
        super().closeEvent(event)
