from __future__ import annotations

import csv
import io

from .model import Bundle, FileItem

HEADER = "Filename,Type,Size (KB),Content Preview"
PREVIEW_LENGTH = 100


def content_preview(item: FileItem) -> str:
    """First 100 characters of text content with newlines flattened to spaces."""
    if item.text_content is None:
        return f"{item.category} file"
    preview = item.text_content[:PREVIEW_LENGTH]
    # one space per character so the preview keeps its length
    return preview.replace("\r", " ").replace("\n", " ")


def write_csv(bundle: Bundle) -> bytes:
    out = io.StringIO()
    out.write(HEADER + "\n")
    # QUOTE_ALL doubles embedded quotes
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for prepared in bundle.items:
        item = prepared.item
        writer.writerow([item.name, item.category, f"{item.size / 1024:.2f}", content_preview(item)])
    return out.getvalue().encode("utf-8")
