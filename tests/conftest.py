"""
Shared fixtures: in-memory images and a scripted codec.
"""

import random
from io import BytesIO

import pytest
from PIL import Image

from storefront_media.core.errors import CodecError


def noise_image(width, height, mode="RGB", seed=0):
    bands = len(mode)
    data = random.Random(seed).randbytes(width * height * bands)
    return Image.frombytes(mode, (width, height), data)


def image_bytes(image, fmt):
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeImage:
    def __init__(self, width, height):
        self.width = width
        self.height = height
        self.released = False


class ScriptedCodec:
    """ImageCodec double whose encoded sizes come from a table.

    ``jpeg_sizes`` maps quality -> payload length; qualities missing from
    the table use ``default_jpeg_size``.
    """

    def __init__(self, png_size, jpeg_sizes=None, default_jpeg_size=10, dimensions=(4000, 3000),
                 decode_error=None, encode_error_at=None):
        self.png_size = png_size
        self.jpeg_sizes = jpeg_sizes or {}
        self.default_jpeg_size = default_jpeg_size
        self.source_dimensions = dimensions
        self.decode_error = decode_error
        self.encode_error_at = encode_error_at
        self.encoded = []
        self.images = []

    def decode(self, data):
        if self.decode_error:
            raise self.decode_error
        image = FakeImage(*self.source_dimensions)
        self.images.append(image)
        return image

    def dimensions(self, image):
        return image.width, image.height

    def resize_within(self, image, max_dimension):
        scale = min(1.0, max_dimension / max(image.width, image.height))
        resized = FakeImage(max(1, round(image.width * scale)), max(1, round(image.height * scale)))
        self.images.append(resized)
        return resized

    def encode(self, image, fmt, quality=None, compression_level=None):
        marker = "lossless" if fmt == "PNG" else quality
        if self.encode_error_at == marker:
            raise CodecError("encoder crashed")
        self.encoded.append(marker)
        if fmt == "PNG":
            return b"P" * self.png_size
        return b"J" * self.jpeg_sizes.get(quality, self.default_jpeg_size)

    def release(self, image):
        image.released = True


@pytest.fixture
def png_bytes():
    return image_bytes(Image.new("RGB", (320, 240), (200, 30, 30)), "PNG")


@pytest.fixture
def jpeg_bytes():
    return image_bytes(Image.new("RGB", (2000, 1000), (30, 120, 200)), "JPEG")


@pytest.fixture
def corrupt_bytes():
    return b"\x00\x01definitely not an image\xff" * 32

