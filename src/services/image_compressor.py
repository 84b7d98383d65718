"""
Photo compression for published editions.

Uploads of any format Pillow can read are stored as JPEG bytes that fit a
bounding box and a size budget.
"""

import asyncio
import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from src.models.errors import ImageCompressionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionPolicy:
    max_width: int = 800
    max_height: int = 600
    max_bytes: int = 500 * 1024
    start_quality: int = 80
    min_quality: int = 40
    quality_step: int = 10


class ImageCompressor:
    """Resize and re-encode uploaded photos as JPEG"""

    def __init__(self, policy: CompressionPolicy = CompressionPolicy()):
        self.policy = policy

    async def compress_async(self, data: bytes) -> bytes:
        """Run compress() in a worker thread"""
        return await asyncio.to_thread(self.compress, data)

    def compress(self, data: bytes) -> bytes:
        """
        Return JPEG bytes within the policy's box, never upscaled.

        Quality starts at ``start_quality`` and drops by ``quality_step`` until
        the output fits ``max_bytes``; at ``min_quality`` the result is kept
        even if still larger. Bytes that are not a readable image raise
        ImageCompressionError. If encoding fails, the original bytes are
        returned when they already fit the size budget.
        """
        if not data:
            raise ImageCompressionError("Uploaded photo is empty")

        image = self._decode(data)

        try:
            prepared = self._prepare(image)
            return self._encode(prepared)
        except (OSError, ValueError) as e:
            if len(data) <= self.policy.max_bytes:
                logger.warning(f"JPEG encoding failed ({e}), storing original {len(data)} bytes")
                return data
            logger.error(f"JPEG encoding failed and original is too large ({len(data)} bytes): {e}")
            raise ImageCompressionError("Failed to process photo", cause=e) from e

    def _decode(self, data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            return image
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            logger.warning(f"Rejected upload that is not a readable image: {e}")
            raise ImageCompressionError("Photo is not a valid image", cause=e) from e

    def _prepare(self, image: Image.Image) -> Image.Image:
        # Apply camera orientation before measuring
        image = ImageOps.exif_transpose(image)

        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        # thumbnail() keeps aspect ratio and never enlarges
        image.thumbnail((self.policy.max_width, self.policy.max_height), Image.Resampling.LANCZOS)
        return image

    def _encode(self, image: Image.Image) -> bytes:
        quality = self.policy.start_quality
        while True:
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=quality, optimize=True)
            encoded = buffer.getvalue()

            if len(encoded) <= self.policy.max_bytes or quality - self.policy.quality_step < self.policy.min_quality:
                logger.debug(f"Encoded photo at quality {quality}: {len(encoded)} bytes")
                return encoded

            quality -= self.policy.quality_step
