"""Tests for core.session: folder enumeration and session lifecycle."""
from unittest.mock import MagicMock

import pytest

from conftest import MockConfigManager

from core.preview_resolver import Preview, PreviewResolver, PreviewSource
from core.session import FolderOpenError, Session, SessionRoot
from core.trash import TrashStatus
from core.triage import SortMode, Status


def _names(entries):
    return sorted(e.name for e in entries)


class TestSessionRoot:
    def test_enumerates_supported_top_level_files(self, photo_dir):
        entries = SessionRoot(photo_dir).enumerate()
        assert _names(entries) == ["DSC_0001.NEF", "IMG_1.jpg", "IMG_10.jpg", "IMG_2.jpg"]
        assert all(e.status is Status.UNREVIEWED for e in entries)

    def test_custom_ignore_patterns(self, photo_dir):
        entries = SessionRoot(photo_dir, ignore_patterns=["._*", "IMG_1*"]).enumerate()
        assert _names(entries) == ["DSC_0001.NEF", "IMG_2.jpg"]

    def test_apple_double_files_are_skipped_by_default(self, photo_dir):
        assert not SessionRoot(photo_dir).is_supported_file("._IMG_1.jpg")

    def test_missing_folder(self, tmp_path):
        with pytest.raises(FolderOpenError):
            SessionRoot(tmp_path / "nope").enumerate()

    def test_file_instead_of_folder(self, tmp_path):
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x")
        with pytest.raises(FolderOpenError):
            SessionRoot(path).enumerate()

    def test_trash_dir(self, tmp_path):
        assert SessionRoot(tmp_path, trash_dir_name="Bin").trash_dir == tmp_path / "Bin"


class TestSession:
    @pytest.fixture()
    def session(self, photo_dir):
        s = Session.open(photo_dir, MockConfigManager(), PreviewResolver())
        yield s
        s.close()

    def test_open_uses_config(self, photo_dir):
        config = MockConfigManager({"triage": {"default_sort": "status", "default_columns": 20}})
        s = Session.open(photo_dir, config, PreviewResolver())
        try:
            assert s.navigation.sort_mode is SortMode.STATUS
            assert s.navigation.column_count == 12
            assert len(s.store) == 4
        finally:
            s.close()

    def test_unknown_sort_mode_falls_back(self, photo_dir):
        config = MockConfigManager({"triage": {"default_sort": "by_date"}})
        s = Session.open(photo_dir, config, PreviewResolver())
        try:
            assert s.navigation.sort_mode is SortMode.NAME_ASC
        finally:
            s.close()

    def test_open_invalid_folder(self, tmp_path):
        with pytest.raises(FolderOpenError):
            Session.open(tmp_path / "missing", MockConfigManager(), PreviewResolver())

    def test_request_preview_direct(self, session):
        entry = session.store.get("IMG_1.jpg")
        preview = session.request_preview(entry).result(timeout=5)
        assert preview.source is PreviewSource.DIRECT
        assert preview.data == (session.root.path / "IMG_1.jpg").read_bytes()

    def test_request_preview_raw(self, session):
        entry = session.store.get("DSC_0001.NEF")
        preview = session.request_preview(entry).result(timeout=5)
        assert preview.source is PreviewSource.EMBEDDED_JPEG
        assert len(preview.data) == 60_000

    def test_move_rejects_to_trash(self, session):
        session.navigation.open(3)
        session.store.mark("IMG_2.jpg", Status.REJECT)
        session.store.mark("IMG_10.jpg", Status.REJECT)
        session.preview_cache.request("IMG_2.jpg", session.store.get("IMG_2.jpg").handle)

        result = session.move_rejects_to_trash(confirm=lambda n: True)

        assert result.status is TrashStatus.MOVED
        assert len(session.store) == 2
        assert session.preview_cache.peek("IMG_2.jpg") is None
        assert session.navigation.selected_index == 1
        assert (session.root.trash_dir / "IMG_2.jpg").exists()

    def test_trash_folder_is_not_enumerated_on_reopen(self, photo_dir):
        config = MockConfigManager()
        s = Session.open(photo_dir, config, PreviewResolver())
        s.store.mark("IMG_1.jpg", Status.REJECT)
        s.move_rejects_to_trash()
        s.close()
        reopened = Session.open(photo_dir, config, PreviewResolver())
        try:
            assert "IMG_1.jpg" not in reopened.store
            assert len(reopened.store) == 3
        finally:
            reopened.close()

    def test_close_is_idempotent(self, photo_dir):
        resolver = MagicMock(spec=PreviewResolver)
        resolver.resolve.return_value = Preview("IMG_1.jpg", b"x", "image/jpeg", PreviewSource.DIRECT)
        s = Session.open(photo_dir, MockConfigManager(), resolver)
        s.navigation.open(0)
        s.close()
        s.close()
        assert s.closed
        assert s.navigation.selected_index is None
        future = s.request_preview(s.store.get("IMG_1.jpg"))
        assert future.result(timeout=5) is None
