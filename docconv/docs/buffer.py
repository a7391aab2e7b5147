from __future__ import annotations

import logging
import uuid
from typing import Dict

logger = logging.getLogger(__name__)


class BufferManager:
    """Session registry of byte handles (``buffer://<id>``) for image items.

    Handles are cheap references to bytes the session already holds; they must
    be released when the owning item leaves the store, otherwise the registry
    keeps every upload alive until cleanup().
    """

    SCHEME = "buffer://"

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}

    def register(self, data: bytes) -> str:
        handle = f"{self.SCHEME}{uuid.uuid4().hex}"
        self._blobs[handle] = data
        return handle

    def resolve(self, handle: str) -> bytes:
        try:
            return self._blobs[handle]
        except KeyError:
            raise KeyError(f"Unknown or released buffer handle: {handle}") from None

    def release(self, handle: str) -> None:
        if self._blobs.pop(handle, None) is None:
            logger.debug("Release of unknown handle %s ignored", handle)

    def __contains__(self, handle: object) -> bool:
        return handle in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    def cleanup(self) -> None:
        self._blobs.clear()
