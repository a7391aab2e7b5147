import cv2
import numpy as np

from docconv.docs.model import Bundle, ConversionSpec, EnhancementSpec, PreparedItem
from docconv.image.processing import prepare_image

PDF_BYTES = b"%PDF-1.4\n" + b"\0" * (int(2.5 * 1024 * 1024) - 9)


def make_jpeg(width=40, height=20, color=(200, 80, 40)):
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:] = color[::-1]
    ok, buf = cv2.imencode(".jpg", img)
    assert ok
    return buf.tobytes()


def prepare(items, raster="jpeg"):
    out = []
    for item in items:
        if item.category == "image":
            data = prepare_image(item.raw.data, EnhancementSpec(), fmt=raster)
            out.append(PreparedItem(item=item, image_bytes=data, image_mime=f"image/{raster}"))
        else:
            out.append(PreparedItem(item=item))
    return tuple(out)


def make_bundle(items, conversion=None, **kwargs):
    return Bundle(items=prepare(items), conversion=conversion or ConversionSpec(), **kwargs)
