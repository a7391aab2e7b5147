"""Image-level processing utilities (decode, enhancement, encode)."""

from .processing import (
    ImageDecodeError,
    decode_image,
    enhance_pixels,
    encode_image,
    prepare_image,
)

__all__ = [
    "ImageDecodeError",
    "decode_image",
    "enhance_pixels",
    "encode_image",
    "prepare_image",
]
