"""Tests for core.formats: extension classification."""
import pytest

from core.formats import FormatClass, classify, extension_of, is_allowed, mime_type_for


class TestClassify:
    @pytest.mark.parametrize("name", ["a.jpg", "a.JPEG", "a.png", "a.webp", "a.avif"])
    def test_direct(self, name):
        assert classify(name) is FormatClass.DIRECT

    @pytest.mark.parametrize("name", ["a.heic", "a.HEIF"])
    def test_heic(self, name):
        assert classify(name) is FormatClass.HEIC

    @pytest.mark.parametrize("name", ["a.NEF", "a.arw", "a.cr2", "a.CR3", "a.dng", "a.raf", "a.orf", "a.rw2"])
    def test_raw(self, name):
        assert classify(name) is FormatClass.RAW

    def test_unknown_is_fallback(self):
        assert classify("a.tiff") is FormatClass.FALLBACK
        assert classify("README") is FormatClass.FALLBACK


class TestHelpers:
    def test_extension_of(self):
        assert extension_of("IMG_1.JPG") == "jpg"
        assert extension_of("archive.tar.gz") == "gz"
        assert extension_of("noext") == ""

    def test_is_allowed(self):
        assert is_allowed("photo.Heic")
        assert is_allowed("photo.rw2")
        assert not is_allowed("notes.txt")
        assert not is_allowed("photo.tiff")

    def test_mime_types(self):
        assert mime_type_for("a.png") == "image/png"
        assert mime_type_for("a.JPG") == "image/jpeg"
        assert mime_type_for("a.webp") == "image/webp"
        assert mime_type_for("a.nef") == "image/jpeg"
