from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .buffer import BufferManager
from .model import IMAGE, Bundle, FileItem, PreparedItem


def image_ref(item: FileItem, buffer: Optional[BufferManager] = None) -> Optional[str]:
    """Byte handle of an image item, or None once the handle has been released."""
    if item.category != IMAGE or not item.handle:
        return None
    if buffer is not None and item.handle not in buffer:
        return None
    return item.handle


def item_record(prepared: PreparedItem, buffer: Optional[BufferManager] = None) -> Dict[str, Any]:
    item = prepared.item
    return {
        "id": item.id,
        "name": item.name,
        "category": item.category,
        "size": item.size,
        "text_content": item.text_content,
        "image_ref": image_ref(item, buffer),
    }


def write_json(bundle: Bundle) -> bytes:
    payload = {
        "metadata": bundle.metadata,
        "cover_page": bundle.cover.to_dict() if bundle.cover is not None else None,
        "files": [item_record(p, bundle.buffer) for p in bundle.items],
        "conversion_settings": bundle.conversion.to_dict(),
        "generated_at": bundle.generated_at,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
