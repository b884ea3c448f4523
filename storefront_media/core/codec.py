"""
Decode / resize / encode capability used by the transcoder.

The transcoder only talks to ``ImageCodec``; ``PillowCodec`` is the
production implementation.
"""

import struct
from io import BytesIO
from typing import Any, Optional, Protocol, Tuple

from PIL import Image, UnidentifiedImageError

from .errors import CodecError, UnsupportedFormatError

LOSSLESS_FORMAT = "PNG"
LOSSY_FORMAT = "JPEG"

MIME_TYPES = {
    LOSSLESS_FORMAT: "image/png",
    LOSSY_FORMAT: "image/jpeg",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# JPEG has no alpha channel; transparent pixels are composited onto this.
JPEG_BACKGROUND = (255, 255, 255)

_PNG_MODES = ("1", "L", "LA", "P", "RGB", "RGBA", "I;16")


class ImageCodec(Protocol):
    def decode(self, data: bytes) -> Any:
        ...

    def dimensions(self, image: Any) -> Tuple[int, int]:
        ...

    def resize_within(self, image: Any, max_dimension: int) -> Any:
        ...

    def encode(self, image: Any, fmt: str, quality: Optional[int] = None,
               compression_level: Optional[int] = None) -> bytes:
        ...

    def release(self, image: Any) -> None:
        ...


class PillowCodec:
    """ImageCodec backed by Pillow."""

    def decode(self, data: bytes) -> Image.Image:
        try:
            im = Image.open(BytesIO(data))
            im.load()
        except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
            raise UnsupportedFormatError("Unsupported image format", str(exc)) from exc
        except (OSError, SyntaxError, ValueError, EOFError, struct.error) as exc:
            # Truncated or otherwise corrupt payloads
            raise UnsupportedFormatError("Image data could not be decoded", str(exc)) from exc
        return im

    def dimensions(self, image: Image.Image) -> Tuple[int, int]:
        return image.size

    def resize_within(self, image: Image.Image, max_dimension: int) -> Image.Image:
        """Fit inside a ``max_dimension`` square; never enlarges."""
        try:
            resized = image.copy()
            resized.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
        except (OSError, ValueError) as exc:
            raise CodecError("Failed to resize image", str(exc)) from exc
        return resized

    def encode(self, image: Image.Image, fmt: str, quality: Optional[int] = None,
               compression_level: Optional[int] = None) -> bytes:
        buffer = BytesIO()
        try:
            if fmt == LOSSLESS_FORMAT:
                level = 6 if compression_level is None else compression_level
                _prepare_for_png(image).save(buffer, format="PNG", compress_level=level)
            elif fmt == LOSSY_FORMAT:
                _flatten_for_jpeg(image).save(
                    buffer, format="JPEG", quality=quality, optimize=True, progressive=True
                )
            else:
                raise CodecError(f"Unsupported target format {fmt!r}")
            return buffer.getvalue()
        except CodecError:
            raise
        except (OSError, ValueError, KeyError) as exc:
            raise CodecError(f"Failed to encode {fmt}", str(exc)) from exc
        finally:
            buffer.close()

    def release(self, image: Image.Image) -> None:
        image.close()


def _prepare_for_png(image: Image.Image) -> Image.Image:
    if image.mode in _PNG_MODES:
        return image
    return image.convert("RGBA" if "A" in image.getbands() else "RGB")


def _flatten_for_jpeg(image: Image.Image) -> Image.Image:
    if image.mode == "P" and "transparency" in image.info:
        image = image.convert("RGBA")
    if image.mode in ("RGBA", "LA"):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, JPEG_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode in ("RGB", "L"):
        return image
    return image.convert("RGB")


def has_png_signature(data: bytes) -> bool:
    return data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE
