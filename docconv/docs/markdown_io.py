from __future__ import annotations

import re
from typing import List

from .html_io import data_uri, format_size
from .model import DOCUMENT, IMAGE, Bundle, PreparedItem


def code_fence(text: str) -> str:
    """Backtick fence longer than any backtick run inside ``text``."""
    longest = max((len(m) for m in re.findall(r"`+", text)), default=0)
    return "`" * max(3, longest + 1)


def _item_section(prepared: PreparedItem, include_metadata: bool) -> List[str]:
    item = prepared.item
    out = [f"## {item.name}", ""]
    if item.category == IMAGE:
        out.append(f"![{item.name}]({data_uri(prepared)})")
    elif item.category == DOCUMENT and item.text_content is not None:
        fence = code_fence(item.text_content)
        out.extend([fence, item.text_content, fence])
    elif item.category == DOCUMENT:
        out.append("*Document content could not be read.*")
    else:
        out.append(f"*PDF file ({format_size(item.size)}) - content not embedded.*")
    if include_metadata:
        out.extend(["", f"*Type: {item.category} | Size: {format_size(item.size)}*"])
    out.extend(["", "---", ""])
    return out


def write_markdown(bundle: Bundle) -> bytes:
    lines: List[str] = []
    cover = bundle.cover
    if cover is not None:
        lines.extend([f"# {cover.title}", ""])
        if cover.subtitle:
            lines.extend([f"### {cover.subtitle}", ""])
        if cover.author:
            lines.extend([f"**By:** {cover.author}", ""])
        if cover.date:
            lines.extend([f"*{cover.date}*", ""])
        if cover.description:
            lines.extend([cover.description, ""])
        lines.extend(["---", ""])
    for prepared in bundle.items:
        lines.extend(_item_section(prepared, bundle.conversion.include_metadata))
    return "\n".join(lines).encode("utf-8")
