"""Raster helpers: decode, enhancement pipeline and re-encode.

Pixel work is done on numpy RGB arrays; OpenCV handles the codecs.
Every call works on its own copy of the pixels, nothing is shared between items.
"""

from __future__ import annotations

import io
import math

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from docconv.docs.model import EnhancementSpec

DENOISE_BLACK_BELOW = 50
DENOISE_WHITE_ABOVE = 200
AUTO_SATURATION = 1.10
AUTO_HUE_DEGREES = 2.0

FORMAT_EXTENSIONS = {"jpeg": ".jpg", "jpg": ".jpg", "png": ".png"}
FORMAT_MIME = {"jpeg": "image/jpeg", "jpg": "image/jpeg", "png": "image/png"}


class ImageDecodeError(RuntimeError):
    pass


def _flatten_alpha(bgra: np.ndarray) -> np.ndarray:
    alpha = bgra[..., 3:4].astype(np.float64) / 255.0
    bgr = bgra[..., :3].astype(np.float64)
    flat = bgr * alpha + 255.0 * (1.0 - alpha)
    return np.clip(np.rint(flat), 0, 255).astype(np.uint8)


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into an RGB uint8 array.

    Doxygen:
    - @param data: Encoded image (any format OpenCV or Pillow can read).
    - @return: HxWx3 RGB array; transparency is flattened onto white.
    - @throws ImageDecodeError: If the bytes are not a readable image.
    """
    if not data:
        raise ImageDecodeError("Empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        # GIF and a few other containers are not always built into OpenCV
        try:
            with Image.open(io.BytesIO(data)) as pil:
                rgba = np.array(pil.convert("RGBA"))
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(f"Failed to decode image: {exc}") from exc
        img = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if img.shape[2] == 4:
        img = _flatten_alpha(img)
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def color_matrix(saturation: float, hue_degrees: float) -> np.ndarray:
    """Saturate-then-hue-rotate colour matrix (feColorMatrix coefficients).

    Doxygen:
    - @param saturation: Saturation multiplier (1.0 = unchanged).
    - @param hue_degrees: Hue rotation in degrees.
    - @return: 3x3 matrix applied as ``out = M @ rgb``.
    """
    s = saturation
    sat = np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ])
    rad = math.radians(hue_degrees)
    c, n = math.cos(rad), math.sin(rad)
    hue = np.array([
        [0.213 + c * 0.787 - n * 0.213, 0.715 - c * 0.715 - n * 0.715, 0.072 - c * 0.072 + n * 0.928],
        [0.213 - c * 0.213 + n * 0.143, 0.715 + c * 0.285 + n * 0.140, 0.072 - c * 0.072 - n * 0.283],
        [0.213 - c * 0.213 - n * 0.787, 0.715 - c * 0.715 + n * 0.715, 0.072 + c * 0.928 + n * 0.072],
    ])
    return hue @ sat


def enhance_pixels(rgb: np.ndarray, spec: EnhancementSpec) -> np.ndarray:
    """Apply the enhancement chain to an RGB array and return a new array.

    Order is fixed: brightness/contrast (+ auto-enhance colour matrix in the
    same filter), sharpening, denoise thresholding. Inactive steps are skipped.

    Doxygen:
    - @param rgb: HxWx3 uint8 RGB array; left untouched.
    - @param spec: Enhancement parameters.
    - @return: Enhanced HxWx3 uint8 array.
    """
    out = rgb.copy()

    if spec.brightness or spec.contrast or spec.auto_enhance:
        work = out.astype(np.float64)
        alpha = 1.0 + spec.contrast / 100.0
        beta = 128.0 * (1.0 - alpha) + 255.0 * spec.brightness / 100.0
        work = np.clip(work * alpha + beta, 0.0, 255.0)
        if spec.auto_enhance:
            matrix = color_matrix(AUTO_SATURATION, AUTO_HUE_DEGREES)
            work = np.clip(work @ matrix.T, 0.0, 255.0)
        out = np.rint(work).astype(np.uint8)

    if spec.sharpness > 0:
        work = out.astype(np.float64)
        avg = work.sum(axis=2, keepdims=True) / 3.0
        work = work + avg * (spec.sharpness / 10.0)
        out = np.clip(np.rint(work), 0, 255).astype(np.uint8)

    if spec.denoise:
        mean = out.astype(np.float64).sum(axis=2) / 3.0
        out[mean < DENOISE_BLACK_BELOW] = 0
        out[mean > DENOISE_WHITE_ABOVE] = 255

    return out


def encode_image(rgb: np.ndarray, fmt: str = "jpeg", quality: int = 95, compression: int = 6) -> bytes:
    """Encode an RGB array as JPEG (quality applies) or PNG (compression applies)."""
    fmt = fmt.lower()
    if fmt not in FORMAT_EXTENSIONS:
        raise ValueError(f"Unsupported raster format: {fmt}")
    bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    if FORMAT_EXTENSIONS[fmt] == ".png":
        params = [cv2.IMWRITE_PNG_COMPRESSION, int(compression)]
    else:
        params = [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    ok, encoded = cv2.imencode(FORMAT_EXTENSIONS[fmt], bgr, params)
    if not ok:
        raise RuntimeError(f"Failed to encode image as {fmt}")
    return encoded.tobytes()


def prepare_image(
    data: bytes,
    enhancement: EnhancementSpec,
    fmt: str = "jpeg",
    quality: int = 95,
    compression: int = 6,
) -> bytes:
    """Decode → (enhance if any option is active) → encode, on a private buffer."""
    rgb = decode_image(data)
    if enhancement.is_active:
        rgb = enhance_pixels(rgb, enhancement)
    return encode_image(rgb, fmt=fmt, quality=quality, compression=compression)


def image_size(data: bytes) -> tuple:
    """Return (width, height) of encoded image bytes without decoding the pixels."""
    try:
        with Image.open(io.BytesIO(data)) as pil:
            return pil.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Failed to read image size: {exc}") from exc
