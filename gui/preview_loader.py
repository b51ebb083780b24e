import logging
from concurrent.futures import Future
from typing import Callable, Dict, Optional, Set

from PySide6.QtCore import QObject, Signal, Slot
from PySide6.QtGui import QImage

from core.preview_resolver import Preview
from core.session import Session
from core.triage import FileEntry
from .image_utils import decode_preview

THUMBNAIL_BOUND = 512


class PreviewLoader(QObject):
    """
    Bridges the session's preview cache to the GUI thread.

    Resolution and thumbnail decoding happen on the session's worker pool;
    results come back through ``thumbnailReady`` (queued onto the GUI thread
    by Qt).  A null QImage means "no preview available".  Views that no
    longer care about a name just ignore its signal.
    """

    thumbnailReady = Signal(str, QImage)
    _decoded = Signal(str, QImage)

    def __init__(self, session: Session, parent=None):
        super().__init__(parent)
        self.session = session
        self._thumbnails: Dict[str, QImage] = {}
        self._in_flight: Set[str] = set()
        self._decoded.connect(self._on_decoded)

    def request_thumbnail(self, entry: FileEntry) -> Optional[QImage]:
        """Return the thumbnail if already decoded, else start loading it and return None."""
        image = self._thumbnails.get(entry.name)
        if image is not None:
            return image
        if entry.name in self._in_flight or self.session.closed:
            return None
        self._in_flight.add(entry.name)
        self.decode_when_done(self.session.request_preview(entry), self._decode, entry.name)
        return None

    def request_full(self, entry: FileEntry) -> "Future[Optional[Preview]]":
        """Future of the full Preview, for the review view."""
        return self.session.request_preview(entry)

    def decode_when_done(self, future: Future, fn: Callable[[str, Future], None], name: str) -> None:
        """
        Call ``fn(name, future)`` on a worker thread once *future* completes.

        A cached preview comes back as an already-finished future, whose done
        callback would otherwise run right here on the GUI thread.
        """
        future.add_done_callback(lambda f: self._submit(fn, name, f))

    def _submit(self, fn, name: str, future: Future) -> None:
        try:
            self.session.executor.submit(fn, name, future)
        except RuntimeError:
            # Pool already shut down: the folder was closed.
            logging.debug(f"Dropping decode of {name}; session closed")

    def forget(self, name: str) -> None:
        self._thumbnails.pop(name, None)

    def _decode(self, name: str, future: Future) -> None:
        preview = future.result()
        image = decode_preview(preview, THUMBNAIL_BOUND) if preview is not None else QImage()
        if preview is not None and image.isNull():
            logging.warning(f"Preview for {name} ({preview.source.value}) could not be decoded")
        self._decoded.emit(name, image)

    @Slot(str, QImage)
    def _on_decoded(self, name: str, image: QImage):
        self._in_flight.discard(name)
        if self.session.closed:
            return
        if not image.isNull() or self.session.preview_cache.cache_failures:
            self._thumbnails[name] = image
        self.thumbnailReady.emit(name, image)
