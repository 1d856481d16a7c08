"""Tests for upload validation and normalisation."""

import io
import base64

import pytest
from PIL import Image

from situationship import UploadError, UploadItem, load_upload
from conftest import make_image_bytes


class TestLoadUpload:

    @pytest.mark.parametrize("fmt, media_type", [
        ("PNG", "image/png"),
        ("JPEG", "image/jpeg"),
        ("GIF", "image/gif"),
        ("WEBP", "image/webp"),
    ])
    def test_supported_formats_pass_through(self, fmt, media_type):
        data = make_image_bytes(fmt)
        item = load_upload(data, filename=f"shot.{fmt.lower()}")

        assert item.media_type == media_type
        assert item.data == data
        assert item.filename == f"shot.{fmt.lower()}"

    def test_media_type_comes_from_content_not_name(self):
        """A PNG named .jpg is still reported as PNG."""
        item = load_upload(make_image_bytes("PNG"), filename="lies.jpg")
        assert item.media_type == "image/png"

    def test_bmp_is_reencoded_as_jpeg(self):
        item = load_upload(make_image_bytes("BMP"), filename="old.bmp")

        assert item.media_type == "image/jpeg"
        with Image.open(io.BytesIO(item.data)) as img:
            assert img.format == "JPEG"

    def test_oversized_image_is_downscaled(self):
        data = make_image_bytes("PNG", size=(400, 100))
        item = load_upload(data, max_dimension=200)

        with Image.open(io.BytesIO(item.data)) as img:
            assert img.size == (200, 50)
        assert item.media_type == "image/jpeg"

    def test_downscaled_alpha_image_stays_png(self):
        data = make_image_bytes("PNG", size=(300, 300), mode="RGBA")
        item = load_upload(data, max_dimension=100)

        assert item.media_type == "image/png"
        with Image.open(io.BytesIO(item.data)) as img:
            assert img.size == (100, 100)
            assert img.mode == "RGBA"

    def test_empty_upload_rejected(self):
        with pytest.raises(UploadError, match="empty"):
            load_upload(b"", filename="blank.png")

    def test_too_large_rejected(self):
        data = make_image_bytes("PNG")
        with pytest.raises(UploadError, match="limit"):
            load_upload(data, filename="big.png", max_bytes=len(data) - 1)

    def test_not_an_image_rejected(self):
        with pytest.raises(UploadError, match="not a readable image"):
            load_upload(b"%PDF-1.4 definitely not a picture", filename="doc.pdf")

    def test_truncated_image_rejected(self):
        data = make_image_bytes("PNG", size=(64, 64))
        with pytest.raises(UploadError):
            load_upload(data[: len(data) // 2], filename="cut.png")

    def test_upload_error_is_value_error(self):
        assert issubclass(UploadError, ValueError)


class TestUploadItem:

    def test_content_block(self):
        item = UploadItem(data=b"\x89PNGdata", media_type="image/png", filename="a.png")
        block = item.content_block()

        assert block["type"] == "image"
        assert block["source"]["type"] == "base64"
        assert block["source"]["media_type"] == "image/png"
        assert base64.b64decode(block["source"]["data"]) == b"\x89PNGdata"

    def test_is_immutable(self):
        item = UploadItem(data=b"x", media_type="image/png")
        with pytest.raises(Exception):
            item.data = b"y"
