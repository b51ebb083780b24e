"""Tests for the Qt layer: preview decoding and review-view keyboard handling."""
import io
import os
import threading
from concurrent.futures import Future

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PIL import Image
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage
from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from conftest import MockConfigManager

from config.config_manager import DEFAULT_CONFIG
from core.preview_resolver import Preview, PreviewResolver, PreviewSource
from core.session import Session
from core.triage import Status
from gui.image_utils import decode_preview
from gui.preview_loader import PreviewLoader
from gui.review_view import ReviewView


@pytest.fixture(scope="module")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def _jpeg(width=40, height=20) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color=(10, 200, 30)).save(out, "JPEG")
    return out.getvalue()


class TestDecodePreview:
    def test_plain(self, qapp):
        image = decode_preview(Preview("a.jpg", _jpeg(), "image/jpeg", PreviewSource.DIRECT))
        assert not image.isNull()
        assert (image.width(), image.height()) == (40, 20)

    def test_rotated_orientation(self, qapp):
        preview = Preview("a.nef", _jpeg(), "image/jpeg", PreviewSource.EMBEDDED_JPEG, orientation=6)
        image = decode_preview(preview)
        assert (image.width(), image.height()) == (20, 40)

    def test_bounded(self, qapp):
        image = decode_preview(Preview("a.jpg", _jpeg(400, 200), "image/jpeg", PreviewSource.DIRECT), bound=100)
        assert max(image.width(), image.height()) <= 100

    def test_garbage_is_null(self, qapp):
        image = decode_preview(Preview("a.jpg", b"nope", "image/jpeg", PreviewSource.DIRECT))
        assert image.isNull()


class TestReviewViewKeys:
    @pytest.fixture()
    def review(self, qapp, photo_dir):
        session = Session.open(photo_dir, MockConfigManager(), PreviewResolver())
        loader = PreviewLoader(session)
        config = MockConfigManager({"hotkeys": DEFAULT_CONFIG["hotkeys"]})
        view = ReviewView(session.navigation, loader, config)
        session.navigation.open(1)
        view.activate()
        yield view, session
        view.deactivate()
        session.close()

    def test_arrow_keys_navigate(self, review):
        view, session = review
        QTest.keyClick(view, Qt.Key_Right)
        assert session.navigation.selected_index == 2
        QTest.keyClick(view, Qt.Key_Left)
        QTest.keyClick(view, Qt.Key_Left)
        assert session.navigation.selected_index == 0

    def test_marking_keys(self, review):
        view, session = review
        name = session.navigation.selected_entry.name
        QTest.keyClick(view, Qt.Key_Up)
        assert session.store.get(name).status is Status.KEEP
        QTest.keyClick(view, Qt.Key_Down)
        assert session.store.get(name).status is Status.REJECT
        QTest.keyClick(view, Qt.Key_0)
        assert session.store.get(name).status is Status.UNREVIEWED

    def test_escape_requests_close(self, review):
        view, _ = review
        closed = []
        view.closeRequested.connect(lambda: closed.append(True))
        QTest.keyClick(view, Qt.Key_Escape)
        assert closed == [True]


class TestPreviewLoader:
    @pytest.fixture()
    def make_loader(self, qapp, photo_dir):
        sessions = []

        def make(cache_failures=True):
            config = MockConfigManager({"preview": {"workers": 2, "cache_failures": cache_failures}})
            session = Session.open(photo_dir, config, PreviewResolver())
            sessions.append(session)
            return PreviewLoader(session), session

        yield make
        for session in sessions:
            session.close()

    def test_finished_future_decodes_on_worker(self, make_loader):
        loader, _ = make_loader()
        future = Future()
        future.set_result(None)
        seen = []
        done = threading.Event()

        def decode(name, f):
            seen.append((name, threading.current_thread().name))
            done.set()

        loader.decode_when_done(future, decode, "IMG_1.jpg")
        assert done.wait(5)
        name, thread_name = seen[0]
        assert name == "IMG_1.jpg"
        assert thread_name.startswith("preview")

    def test_cached_thumbnail_decodes_on_worker(self, make_loader, monkeypatch):
        loader, session = make_loader()
        entry = session.store.get("IMG_1.jpg")
        assert session.preview_cache.request(entry.name, entry.handle) is not None
        threads = []
        done = threading.Event()

        def fake_decode(preview, bound):
            threads.append(threading.current_thread().name)
            done.set()
            return QImage()

        monkeypatch.setattr("gui.preview_loader.decode_preview", fake_decode)
        assert loader.request_thumbnail(entry) is None
        assert done.wait(5)
        assert threads[0].startswith("preview")
        assert threads[0] != threading.main_thread().name

    def test_decode_after_close_is_dropped(self, make_loader):
        loader, session = make_loader()
        session.close()
        future = Future()
        future.set_result(None)
        calls = []
        loader.decode_when_done(future, lambda name, f: calls.append(name), "IMG_1.jpg")
        assert calls == []

    def test_failed_thumbnail_not_kept_without_failure_caching(self, make_loader):
        loader, _ = make_loader(cache_failures=False)
        ready = []
        loader.thumbnailReady.connect(lambda name, image: ready.append(name))
        loader._on_decoded("IMG_1.jpg", QImage())
        assert "IMG_1.jpg" not in loader._thumbnails
        assert ready == ["IMG_1.jpg"]

    def test_failed_thumbnail_kept_with_failure_caching(self, make_loader):
        loader, _ = make_loader(cache_failures=True)
        loader._on_decoded("IMG_1.jpg", QImage())
        assert loader._thumbnails["IMG_1.jpg"].isNull()

    def test_decoded_thumbnail_always_kept(self, make_loader):
        loader, _ = make_loader(cache_failures=False)
        image = QImage(8, 8, QImage.Format_RGB32)
        loader._on_decoded("IMG_1.jpg", image)
        assert loader.request_thumbnail(loader.session.store.get("IMG_1.jpg")) is loader._thumbnails["IMG_1.jpg"]
