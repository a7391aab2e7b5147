from __future__ import annotations

import io
import re
from typing import Optional

from docx import Document as DocxDocument
from docx.enum.section import WD_ORIENT
from docx.shared import Pt

from docconv.image.processing import image_size

from .html_io import format_size
from .model import DOCUMENT, IMAGE, Bundle, PreparedItem
from .txt import placeholder

# XML 1.0 forbids most C0 control characters
_INVALID_XML = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
HEADING_ALLOWANCE = Pt(60)


def _clean(text: str) -> str:
    return _INVALID_XML.sub("", text)


def _add_body(d, prepared: PreparedItem, avail_width, avail_height) -> None:
    item = prepared.item
    if item.category == IMAGE and prepared.image_bytes is not None:
        px_w, px_h = image_size(prepared.image_bytes)
        scale = min(avail_width / px_w, (avail_height - HEADING_ALLOWANCE) / px_h)
        d.add_picture(io.BytesIO(prepared.image_bytes), width=int(px_w * scale), height=int(px_h * scale))
    elif item.category == DOCUMENT and item.text_content is not None:
        for line in item.text_content.splitlines() or [""]:
            d.add_paragraph(_clean(line))
    elif item.category == DOCUMENT:
        d.add_paragraph(placeholder(item))
    else:
        d.add_paragraph(f"{placeholder(item)} ({item.size / 1024 / 1024:.2f} MB) - content not embedded.")


def write_docx(bundle: Bundle) -> bytes:
    d = DocxDocument()
    section = d.sections[0]
    page_width, page_height = bundle.conversion.page_dimensions
    if bundle.conversion.orientation == "landscape":
        section.orientation = WD_ORIENT.LANDSCAPE
    section.page_width = Pt(page_width)
    section.page_height = Pt(page_height)
    # Available area = page minus margins
    avail_width = section.page_width - section.left_margin - section.right_margin
    avail_height = section.page_height - section.top_margin - section.bottom_margin

    first_page = True
    if bundle.cover_image is not None:
        cover_w, cover_h = image_size(bundle.cover_image)
        scale = min(avail_width / cover_w, avail_height / cover_h)
        d.add_picture(io.BytesIO(bundle.cover_image), width=int(cover_w * scale), height=int(cover_h * scale))
        first_page = False

    for prepared in bundle.items:
        if not first_page:
            d.add_page_break()
        first_page = False
        d.add_heading(_clean(prepared.item.name), level=2)
        _add_body(d, prepared, avail_width, avail_height)
        if bundle.conversion.include_metadata:
            note = d.add_paragraph()
            note.add_run(f"Type: {prepared.item.category} | Size: {format_size(prepared.item.size)}").italic = True

    meta: Optional[dict] = bundle.metadata
    if meta:
        props = d.core_properties
        props.title = _clean(str(meta.get("title", "")))
        props.author = _clean(str(meta.get("author", "")))
        props.comments = f"{meta.get('total_files', len(bundle.items))} files"

    out = io.BytesIO()
    d.save(out)
    return out.getvalue()
