"""Cover page rendering with Pillow.

The page is laid out in A4 points (595x842), drawn at 3x and downscaled so the
text stays crisp after JPEG encoding.
"""

from __future__ import annotations

import io
from typing import Callable, List, Tuple

from PIL import Image, ImageColor, ImageDraw

from docconv.docs.model import CoverPageSpec

from .draw import load_font

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
SUPERSAMPLE = 3
DESCRIPTION_WRAP_WIDTH = 400
DESCRIPTION_LINE_HEIGHT = 20
COVER_QUALITY = 95

# (baseline y, font size, bold)
TITLE = (200, 36, True)
SUBTITLE = (250, 24, False)
AUTHOR = (350, 18, False)
DATE = (400, 16, False)
DESCRIPTION = (500, 14, False)


def wrap_description(text: str, measure: Callable[[str], float], budget: float = DESCRIPTION_WRAP_WIDTH) -> List[str]:
    """Split on spaces and pack words until the next one would exceed ``budget``.

    Each line is measured with its trailing space; the first word always stays on
    the first line even if it alone is too wide.
    """
    words = text.split(" ")
    lines: List[str] = []
    line = ""
    for n, word in enumerate(words):
        test_line = line + word + " "
        if measure(test_line) > budget and n > 0:
            lines.append(line)
            line = word + " "
        else:
            line = test_line
    lines.append(line)
    return lines


def _color(value: str, field_name: str) -> Tuple[int, int, int]:
    try:
        return ImageColor.getrgb(value)[:3]
    except ValueError as exc:
        raise ValueError(f"Invalid {field_name}: {value!r}") from exc


def render_cover_page(spec: CoverPageSpec, quality: int = COVER_QUALITY) -> bytes:
    """Render the cover page and return it as JPEG bytes (595x842 pixels).

    Doxygen:
    - @param spec: Cover page content and colours.
    - @param quality: JPEG quality of the encoded page.
    - @return: Encoded JPEG image.
    - @throws ValueError: If a colour string cannot be parsed.
    """
    background = _color(spec.background_color, "background color")
    fill = _color(spec.text_color, "text color")
    scale = SUPERSAMPLE

    img = Image.new("RGB", (PAGE_WIDTH * scale, PAGE_HEIGHT * scale), background)
    draw = ImageDraw.Draw(img)
    center_x = PAGE_WIDTH * scale // 2

    def _text(text: str, y: int, size: int, bold: bool) -> None:
        font = load_font(size * scale, bold)
        draw.text((center_x, y * scale), text, font=font, fill=fill, anchor="ms")

    _text(spec.title, *TITLE)
    if spec.subtitle:
        _text(spec.subtitle, *SUBTITLE)
    if spec.author:
        _text(f"By: {spec.author}", *AUTHOR)
    _text(spec.date, *DATE)

    if spec.description:
        y, size, bold = DESCRIPTION
        font = load_font(size * scale, bold)
        lines = wrap_description(spec.description, lambda s: draw.textlength(s, font=font) / scale)
        for line in lines:
            _text(line, y, size, bold)
            y += DESCRIPTION_LINE_HEIGHT

    img = img.resize((PAGE_WIDTH, PAGE_HEIGHT), Image.LANCZOS)
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return out.getvalue()
