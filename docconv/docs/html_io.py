from __future__ import annotations

import base64
from html import escape
from typing import List

from .model import DOCUMENT, IMAGE, Bundle, PreparedItem

STYLE = """
@page {{ size: {page_size} {orientation}; margin: 10mm; }}
body {{ font-family: Arial, sans-serif; max-width: 900px; margin: 0 auto; padding: 20px; color: #222; }}
.cover {{ background: {cover_bg}; color: {cover_fg}; text-align: center; padding: 120px 40px; page-break-after: always; }}
.cover h1 {{ font-size: 36px; margin-bottom: 10px; }}
.cover h2 {{ font-size: 24px; font-weight: normal; }}
.document {{ margin-bottom: 40px; page-break-inside: avoid; }}
.document + .document {{ page-break-before: always; }}
.document img {{ max-width: 100%; height: auto; }}
.document pre {{ white-space: pre-wrap; word-wrap: break-word; background: #f7f7f7; padding: 12px; }}
.metadata {{ color: #666; font-size: 12px; }}
"""


def format_size(size: int) -> str:
    return f"{size / 1024:.2f} KB"


def data_uri(prepared: PreparedItem) -> str:
    encoded = base64.b64encode(prepared.image_bytes or b"").decode("ascii")
    return f"data:{prepared.image_mime or 'image/jpeg'};base64,{encoded}"


def _cover_block(bundle: Bundle) -> List[str]:
    cover = bundle.cover
    out = ['<div class="cover">', f"<h1>{escape(cover.title)}</h1>"]
    if cover.subtitle:
        out.append(f"<h2>{escape(cover.subtitle)}</h2>")
    if cover.author:
        out.append(f"<p>By: {escape(cover.author)}</p>")
    if cover.date:
        out.append(f"<p>{escape(cover.date)}</p>")
    if cover.description:
        out.append(f"<p>{escape(cover.description)}</p>")
    out.append("</div>")
    return out


def _item_block(prepared: PreparedItem, include_metadata: bool) -> List[str]:
    item = prepared.item
    out = ['<div class="document">', f"<h2>{escape(item.name)}</h2>"]
    if item.category == IMAGE:
        out.append(f'<img src="{data_uri(prepared)}" alt="{escape(item.name)}">')
    elif item.category == DOCUMENT:
        if item.text_content is not None:
            out.append(f"<pre>{escape(item.text_content)}</pre>")
        else:
            out.append("<p><em>Document content could not be read.</em></p>")
    else:
        out.append(f"<p><em>PDF file ({format_size(item.size)}) - content not embedded.</em></p>")
    if include_metadata:
        out.append(f'<p class="metadata">Type: {item.category} | Size: {format_size(item.size)}</p>')
    out.append("</div>")
    return out


def write_html(bundle: Bundle) -> bytes:
    conversion = bundle.conversion
    cover = bundle.cover
    title = cover.title if cover is not None else "Converted Documents"
    style = STYLE.format(
        page_size=conversion.page_size,
        orientation=conversion.orientation,
        cover_bg=escape(cover.background_color) if cover else "#ffffff",
        cover_fg=escape(cover.text_color) if cover else "#000000",
    )
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{escape(title)}</title>",
        f"<style>{style}</style>",
        "</head>",
        "<body>",
    ]
    if cover is not None:
        lines.extend(_cover_block(bundle))
    for prepared in bundle.items:
        lines.extend(_item_block(prepared, conversion.include_metadata))
    lines.extend(["</body>", "</html>"])
    return "\n".join(lines).encode("utf-8")
