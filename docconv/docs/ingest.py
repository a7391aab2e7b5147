"""File classification and content loading for the ingestion boundary."""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .buffer import BufferManager
from .model import DOCUMENT, IMAGE, PDF, FileItem, RawFile

logger = logging.getLogger(__name__)

TEXT_MEDIA_TYPES = frozenset({
    "text/plain",
    "text/markdown",
    "text/x-markdown",
    "text/rtf",
    "application/rtf",
    "application/x-rtf",
})
TEXT_EXTENSIONS = (".txt", ".md", ".rtf")
READ_ERROR_PREVIEW = "Error reading file"


def classify_file(media_type: str, name: str) -> Optional[str]:
    """Return the category for a declared media type / file name, or None to reject."""
    media_type = (media_type or "").strip().lower()
    if media_type.startswith("image/"):
        return IMAGE
    if media_type == "application/pdf":
        return PDF
    if media_type in TEXT_MEDIA_TYPES or name.lower().endswith(TEXT_EXTENSIONS):
        return DOCUMENT
    return None


def guess_media_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    if guessed:
        return guessed
    if name.lower().endswith(".md"):
        return "text/markdown"
    return "application/octet-stream"


def _format_mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"


def load_item(raw: RawFile, category: str, buffer: BufferManager) -> FileItem:
    item = FileItem(id=uuid.uuid4().hex, raw=raw, category=category)
    if category == DOCUMENT:
        try:
            text = raw.data.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Could not decode %s as UTF-8: %s", raw.name, exc)
            item.preview = READ_ERROR_PREVIEW
        else:
            item.text_content = text
            item.preview = text[:100]
    elif category == IMAGE:
        item.handle = buffer.register(raw.data)
        item.preview = item.handle
    else:
        item.preview = f"PDF Document ({_format_mb(raw.size)})"
    return item


@dataclass
class IngestResult:
    accepted: List[FileItem] = field(default_factory=list)
    excluded: List[RawFile] = field(default_factory=list)


async def ingest_files(raw_files: Iterable[RawFile], buffer: BufferManager) -> IngestResult:
    """Classify and load a batch; unsupported files are dropped into ``excluded``.

    Each file finishes loading before the next one starts, so ``accepted``
    keeps the order the files were handed in.
    """
    result = IngestResult()
    for raw in raw_files:
        media_type = raw.media_type or guess_media_type(raw.name)
        category = classify_file(media_type, raw.name)
        if category is None:
            logger.debug("Excluding unsupported file %s (%s)", raw.name, media_type)
            result.excluded.append(raw)
            continue
        item = await asyncio.to_thread(load_item, raw, category, buffer)
        result.accepted.append(item)
    return result


def read_raw_file(path: str) -> RawFile:
    with open(path, "rb") as f:
        data = f.read()
    name = os.path.basename(path)
    return RawFile(name=name, media_type=guess_media_type(name), data=data)
