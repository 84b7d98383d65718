"""
Tests for photo compression.
"""

import io
import os

import pytest
from PIL import Image

from src.models.errors import ImageCompressionError, EditionValidationError
from src.services.image_compressor import CompressionPolicy, ImageCompressor

from tests.conftest import make_jpeg


def open_image(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data))


class TestImageCompressor:
    """Test suite for ImageCompressor"""

    @pytest.fixture
    def compressor(self):
        return ImageCompressor()

    def test_large_image_is_fit_in_box(self, compressor):
        output = compressor.compress(make_jpeg(1600, 1200))
        image = open_image(output)

        assert image.format == "JPEG"
        assert image.size == (800, 600)

    def test_aspect_ratio_preserved(self, compressor):
        image = open_image(compressor.compress(make_jpeg(2000, 500)))
        assert image.size == (800, 200)

    def test_small_image_not_enlarged(self, compressor):
        image = open_image(compressor.compress(make_jpeg(320, 240)))
        assert image.size == (320, 240)

    def test_png_with_alpha_becomes_rgb_jpeg(self, compressor):
        buffer = io.BytesIO()
        Image.new("RGBA", (400, 300), (10, 20, 30, 128)).save(buffer, format="PNG")

        image = open_image(compressor.compress(buffer.getvalue()))

        assert image.format == "JPEG"
        assert image.mode == "RGB"

    def test_exif_orientation_applied(self, compressor):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotated 90 degrees clockwise
        buffer = io.BytesIO()
        Image.new("RGB", (400, 200), (0, 0, 255)).save(buffer, format="JPEG", exif=exif)

        image = open_image(compressor.compress(buffer.getvalue()))

        assert image.size == (200, 400)

    def test_deterministic(self, compressor, jpeg_bytes):
        assert compressor.compress(jpeg_bytes) == compressor.compress(jpeg_bytes)

    def test_size_budget_lowers_quality(self):
        noisy = Image.frombytes("RGB", (800, 600), os.urandom(800 * 600 * 3))
        buffer = io.BytesIO()
        noisy.save(buffer, format="PNG")
        data = buffer.getvalue()

        roomy = ImageCompressor(CompressionPolicy(max_bytes=10 * 1024 * 1024)).compress(data)
        tight = ImageCompressor(CompressionPolicy(max_bytes=120 * 1024)).compress(data)

        assert len(tight) < len(roomy)

    def test_floor_quality_result_accepted(self):
        output = ImageCompressor(CompressionPolicy(max_bytes=1)).compress(make_jpeg(200, 200))
        assert open_image(output).format == "JPEG"

    @pytest.mark.parametrize("data", [b"", b"definitely not an image", b"%PDF-1.4 not an image"])
    def test_rejects_non_images(self, compressor, data):
        with pytest.raises(ImageCompressionError) as exc_info:
            compressor.compress(data)
        assert isinstance(exc_info.value, EditionValidationError)
        assert exc_info.value.status_code == 400

    def test_encode_failure_passes_small_original_through(self, compressor, monkeypatch):
        original = make_jpeg(100, 100)

        def fail(image):
            raise OSError("encoder unavailable")

        monkeypatch.setattr(compressor, "_encode", fail)
        assert compressor.compress(original) == original

    def test_encode_failure_rejects_large_original(self, monkeypatch):
        compressor = ImageCompressor(CompressionPolicy(max_bytes=10))

        def fail(image):
            raise OSError("encoder unavailable")

        monkeypatch.setattr(compressor, "_encode", fail)
        with pytest.raises(ImageCompressionError):
            compressor.compress(make_jpeg(100, 100))

    @pytest.mark.asyncio
    async def test_compress_async(self, compressor, jpeg_bytes):
        output = await compressor.compress_async(jpeg_bytes)
        assert open_image(output).size == (800, 600)
