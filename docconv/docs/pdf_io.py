"""PDF assembly with PyMuPDF: cover, one page per item, paginated text."""

from __future__ import annotations

from typing import List

import fitz  # PyMuPDF

from docconv.image.processing import image_size
from docconv.render.draw import layout_lines

from .model import DOCUMENT, IMAGE, Bundle, FileItem
from .txt import placeholder

IMAGE_MARGIN = 28.35  # 10 mm
TEXT_MARGIN = 50.0
PX_TO_PT = 0.75
HEADING_FONT = "hebo"
BODY_FONT = "helv"
HEADING_SIZE = 16
BODY_SIZE = 11
BODY_LEADING = 14


def fit_image(px_width: int, px_height: int, page_width: float, page_height: float) -> fitz.Rect:
    """Aspect-fit an image inside the page margins and centre it.

    Doxygen:
    - @param px_width: Image width in pixels.
    - @param px_height: Image height in pixels.
    - @param page_width: Page width in points.
    - @param page_height: Page height in points.
    - @return: Target rectangle in page coordinates.
    """
    max_w = page_width - 2 * IMAGE_MARGIN
    max_h = page_height - 2 * IMAGE_MARGIN
    w_pt = px_width * PX_TO_PT
    h_pt = px_height * PX_TO_PT
    scale = min(max_w / w_pt, max_h / h_pt)
    final_w = w_pt * scale
    final_h = h_pt * scale
    x = (page_width - final_w) / 2
    y = (page_height - final_h) / 2
    return fitz.Rect(x, y, x + final_w, y + final_h)


def _add_image_page(doc: fitz.Document, data: bytes, page_width: float, page_height: float) -> None:
    page = doc.new_page(width=page_width, height=page_height)
    px_w, px_h = image_size(data)
    page.insert_image(fit_image(px_w, px_h, page_width, page_height), stream=data)


def _body_lines(text: str, page_width: float) -> List[str]:
    max_width = page_width - 2 * TEXT_MARGIN
    return layout_lines(
        text,
        lambda s: fitz.get_text_length(s, fontname=BODY_FONT, fontsize=BODY_SIZE),
        max_width,
    )


def _add_text_pages(doc: fitz.Document, heading: str, text: str, page_width: float, page_height: float) -> int:
    """Write a heading and wrapped body text, adding pages on overflow. Returns pages used."""
    page = doc.new_page(width=page_width, height=page_height)
    pages = 1
    y = TEXT_MARGIN + HEADING_SIZE
    page.insert_text((TEXT_MARGIN, y), heading, fontname=HEADING_FONT, fontsize=HEADING_SIZE)
    y += HEADING_SIZE
    bottom = page_height - TEXT_MARGIN
    for line in _body_lines(text, page_width):
        if y + BODY_LEADING > bottom:
            page = doc.new_page(width=page_width, height=page_height)
            pages += 1
            y = TEXT_MARGIN
        y += BODY_LEADING
        if line:
            page.insert_text((TEXT_MARGIN, y), line, fontname=BODY_FONT, fontsize=BODY_SIZE)
    return pages


def _pdf_notice(item: FileItem) -> str:
    return (
        f"{placeholder(item)}\n\n"
        f"Size: {item.size / 1024 / 1024:.2f} MB. Embedded PDF pages are not merged into this document."
    )


def _document_metadata(bundle: Bundle) -> dict:
    meta = bundle.metadata or {}
    now = fitz.get_pdf_now()
    return {
        "title": str(meta.get("title", "")),
        "author": str(meta.get("author", "")),
        "subject": f"{meta.get('total_files', len(bundle.items))} files",
        "creator": "docconv",
        "producer": "docconv",
        "creationDate": now,
        "modDate": now,
    }


def write_pdf(bundle: Bundle) -> bytes:
    page_width, page_height = bundle.conversion.page_dimensions
    doc = fitz.open()
    try:
        if bundle.cover_image is not None:
            page = doc.new_page(width=page_width, height=page_height)
            page.insert_image(page.rect, stream=bundle.cover_image)
        for prepared in bundle.items:
            item = prepared.item
            if item.category == IMAGE:
                if prepared.image_bytes is None:
                    raise RuntimeError(f"Image {item.name} was not prepared for PDF output")
                _add_image_page(doc, prepared.image_bytes, page_width, page_height)
            elif item.category == DOCUMENT and item.text_content is not None:
                _add_text_pages(doc, item.name, item.text_content, page_width, page_height)
            elif item.category == DOCUMENT:
                _add_text_pages(doc, item.name, placeholder(item), page_width, page_height)
            else:
                _add_text_pages(doc, item.name, _pdf_notice(item), page_width, page_height)
        if bundle.conversion.include_metadata:
            doc.set_metadata(_document_metadata(bundle))
        level = bundle.conversion.compression
        return doc.tobytes(garbage=min(4, level // 2), deflate=level > 0)
    finally:
        doc.close()
