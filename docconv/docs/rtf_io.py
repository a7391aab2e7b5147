from __future__ import annotations

from typing import List

from .model import DOCUMENT, Bundle
from .txt import placeholder

RTF_HEADER = r"{\rtf1\ansi\ansicpg1252\deff0{\fonttbl{\f0\fswiss Arial;}}\f0\fs22 "


def rtf_escape(text: str) -> str:
    """Escape control characters and encode non-ASCII as \\uN? control words."""
    out: List[str] = []
    for ch in text:
        if ch in "\\{}":
            out.append("\\" + ch)
        elif ch == "\n":
            out.append("\\par\n")
        elif ch == "\r":
            continue
        elif ch == "\t":
            out.append("\\tab ")
        elif ord(ch) < 128:
            out.append(ch)
        else:
            for unit in _utf16_units(ch):
                # \u takes a signed 16-bit value
                signed = unit - 0x10000 if unit > 0x7FFF else unit
                out.append(f"\\u{signed}?")
    return "".join(out)


def _utf16_units(ch: str) -> List[int]:
    data = ch.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def write_rtf(bundle: Bundle) -> bytes:
    parts: List[str] = [RTF_HEADER]
    cover = bundle.cover
    if cover is not None:
        parts.append("\\pard\\qc\\b\\fs48 " + rtf_escape(cover.title) + "\\b0\\fs22\\par\n")
        if cover.subtitle:
            parts.append("\\fs32 " + rtf_escape(cover.subtitle) + "\\fs22\\par\n")
        if cover.author:
            parts.append(rtf_escape(f"By: {cover.author}") + "\\par\n")
        if cover.date:
            parts.append(rtf_escape(cover.date) + "\\par\n")
        if cover.description:
            parts.append("\\par\n" + rtf_escape(cover.description) + "\\par\n")
        parts.append("\\pard\\page\n")
    for prepared in bundle.items:
        item = prepared.item
        parts.append("\\pard{\\b\\fs28 " + rtf_escape(item.name) + "}\\par\n")
        if item.category == DOCUMENT and item.text_content is not None:
            parts.append(rtf_escape(item.text_content) + "\\par\n")
        else:
            parts.append(rtf_escape(placeholder(item)) + "\\par\n")
        parts.append("\\par\n")
    parts.append("}")
    return "".join(parts).encode("ascii")
