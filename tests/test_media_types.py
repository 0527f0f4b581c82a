"""Tests for supported-extension classification."""
import pytest

from shoebox.core.media_types import (
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    SUPPORTED_EXTENSIONS,
    media_kind,
    is_supported,
)
from shoebox.core.models import MediaKind


class TestMediaKind:
    """Tests for media_kind()."""

    @pytest.mark.parametrize("ext", sorted(IMAGE_EXTENSIONS))
    def test_every_image_extension(self, ext):
        assert media_kind(ext) is MediaKind.IMAGE
        assert media_kind(ext.upper()) is MediaKind.IMAGE

    @pytest.mark.parametrize("ext", sorted(VIDEO_EXTENSIONS))
    def test_every_video_extension(self, ext):
        assert media_kind(ext) is MediaKind.VIDEO
        assert media_kind(ext.upper()) is MediaKind.VIDEO

    def test_leading_dot_and_mixed_case(self):
        assert media_kind(".JpG") is MediaKind.IMAGE
        assert media_kind(".Mov") is MediaKind.VIDEO

    @pytest.mark.parametrize("ext", ["", "txt", "json", "nef", "webm", "xmp", "jpgx"])
    def test_unsupported(self, ext):
        assert media_kind(ext) is None
        assert is_supported(ext) is False


class TestIsSupported:
    def test_lists_do_not_overlap(self):
        assert not IMAGE_EXTENSIONS & VIDEO_EXTENSIONS
        assert SUPPORTED_EXTENSIONS == IMAGE_EXTENSIONS | VIDEO_EXTENSIONS

    def test_case_insensitive(self):
        assert is_supported("HEIC")
        assert is_supported("m4v")
        assert is_supported(".CR3")

