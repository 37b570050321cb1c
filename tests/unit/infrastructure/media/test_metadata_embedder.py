"""Unit tests for EXIF metadata embedding."""

import piexif
import pytest
from PIL import Image

from camera_media.domain.exceptions import FailureKind
from camera_media.infrastructure.media.metadata_embedder import (
    XP_AUTHOR,
    XP_COMMENT,
    XP_TITLE,
    decode_wide_text,
    embed_metadata,
    encode_wide_text,
)


@pytest.fixture
def jpeg_file(tmp_path):
    path = tmp_path / "Front_Door-1-1700000000_m_CUI.jpeg"
    Image.new("RGB", (32, 24), color=(200, 30, 30)).save(path, format="JPEG")
    return path


class TestWideText:
    """Test XP tag encoding."""

    def test_encoding_is_utf16_with_terminator(self):
        assert encode_wide_text("ab") == b"a\x00b\x00\x00\x00"

    def test_decoding_strips_terminator(self):
        assert decode_wide_text(encode_wide_text("Türkamera")) == "Türkamera"


class TestEmbedMetadata:
    """Test metadata embedding on stored files."""

    def test_tags_are_written(self, jpeg_file):
        outcome = embed_metadata(jpeg_file, "Front Door", "person")

        assert outcome.is_success
        with Image.open(jpeg_file) as image:
            exif = image.getexif()
            assert decode_wide_text(exif[XP_TITLE]) == "Front Door"
            assert decode_wide_text(exif[XP_COMMENT]) == "person"
            assert decode_wide_text(exif[XP_AUTHOR]) == "camera.ui"
            assert image.size == (32, 24)

    def test_compressed_image_data_is_unchanged(self, tmp_path):
        """Only the EXIF segment changes, the scan data is copied byte for byte."""
        path = tmp_path / "noise.jpeg"
        Image.effect_noise((64, 48), 80).convert("RGB").save(path, format="JPEG", quality=90)
        original = path.read_bytes()

        outcome = embed_metadata(path, "Front Door", "person")

        rewritten = path.read_bytes()
        assert outcome.is_success
        scan_start = b"\xff\xda"
        assert rewritten[rewritten.index(scan_start) :] == original[original.index(scan_start) :]

        exif = piexif.load(rewritten)
        assert decode_wide_text(exif["0th"][XP_TITLE]) == "Front Door"
        assert decode_wide_text(exif["0th"][XP_AUTHOR]) == "camera.ui"

    def test_missing_file_is_a_failure(self, tmp_path):
        outcome = embed_metadata(tmp_path / "missing.jpeg", "Front Door", "person")

        assert not outcome.is_success
        assert outcome.kind == FailureKind.METADATA

    def test_non_image_is_left_untouched(self, tmp_path):
        path = tmp_path / "broken.jpeg"
        path.write_bytes(b"not an image at all")

        outcome = embed_metadata(path, "Front Door", "person")

        assert outcome.kind == FailureKind.METADATA
        assert path.read_bytes() == b"not an image at all"

    def test_png_is_left_untouched(self, tmp_path):
        path = tmp_path / "frame.jpeg"
        Image.new("RGB", (8, 8)).save(path, format="PNG")
        original = path.read_bytes()

        outcome = embed_metadata(path, "Front Door", "person")

        assert outcome.kind == FailureKind.METADATA
        assert path.read_bytes() == original
