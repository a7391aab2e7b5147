from __future__ import annotations

from typing import List

from .model import DOCUMENT, IMAGE, PDF, Bundle, CoverPageSpec, FileItem

RULE = "=" * 50
DIVIDER = "-" * 50


def placeholder(item: FileItem) -> str:
    """Bracketed stand-in line for items without text content."""
    if item.category == IMAGE:
        return f"[Image file: {item.name}]"
    if item.category == PDF:
        return f"[PDF file: {item.name}]"
    return f"[Unreadable document: {item.name}]"


def item_text(item: FileItem) -> str:
    if item.category == DOCUMENT and item.text_content is not None:
        return item.text_content
    return placeholder(item)


def cover_lines(cover: CoverPageSpec) -> List[str]:
    lines = [cover.title]
    if cover.subtitle:
        lines.append(cover.subtitle)
    if cover.author:
        lines.append(f"By: {cover.author}")
    if cover.date:
        lines.append(cover.date)
    if cover.description:
        lines.extend(["", cover.description])
    return lines


def write_txt(bundle: Bundle) -> bytes:
    lines: List[str] = []
    if bundle.cover is not None:
        lines.extend(cover_lines(bundle.cover))
        lines.extend(["", RULE, ""])
    for prepared in bundle.items:
        item = prepared.item
        lines.append(f"Document: {item.name}")
        lines.append(DIVIDER)
        lines.append(item_text(item))
        lines.append("")
    return "\n".join(lines).encode("utf-8")
