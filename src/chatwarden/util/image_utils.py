"""Sticker transcoding: any image into a 512x512 transparent WebP."""

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from chatwarden.util.logger import get_logger

logger = get_logger("image_utils")

register_heif_opener()

STICKER_SIZE = (512, 512)
STICKER_QUALITY = 80


class StickerError(ValueError):
    """Raised when the input bytes are not a decodable image."""


def make_sticker(image_bytes: bytes) -> bytes:
    """
    Convert an image into sticker-ready WebP bytes.

    The image is scaled to fit inside 512x512 keeping its aspect ratio and
    centered on a fully transparent 512x512 canvas. This function blocks the
    calling thread, so run it through ``asyncio.to_thread``.

    Raises:
        StickerError: If ``image_bytes`` cannot be decoded as an image.
    """
    try:
        with Image.open(BytesIO(image_bytes)) as source:
            image = source.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        raise StickerError(f"cannot decode image: {exc}") from exc

    image = ImageOps.contain(image, STICKER_SIZE)
    canvas = Image.new("RGBA", STICKER_SIZE, (0, 0, 0, 0))
    offset = ((STICKER_SIZE[0] - image.width) // 2, (STICKER_SIZE[1] - image.height) // 2)
    canvas.paste(image, offset, image)

    output = BytesIO()
    canvas.save(output, format="WEBP", quality=STICKER_QUALITY)
    logger.debug("[STICKER] Converted %d input bytes into %d byte sticker", len(image_bytes), output.tell())
    return output.getvalue()
