from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .buffer import BufferManager
from .model import FileItem

logger = logging.getLogger(__name__)

NAME_ORDER = "name"
CUSTOM_ORDER = "custom"


def name_sort_key(item: FileItem) -> Tuple[str, str]:
    # Case-insensitive first; on a tie lowercase sorts before uppercase.
    return (item.name.casefold(), item.name.swapcase())


class OrderingStore:
    """Live, user-chosen sequence of file items.

    In name order the sequence is always sorted; in custom order items are
    appended and can be moved. Leaving custom order discards the manual order.
    """

    def __init__(self, buffer: Optional[BufferManager] = None, mode: str = NAME_ORDER) -> None:
        if mode not in (NAME_ORDER, CUSTOM_ORDER):
            raise ValueError(f"Unknown ordering mode: {mode}")
        self._buffer = buffer
        self._mode = mode
        self._items: List[FileItem] = []

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def buffer(self) -> Optional[BufferManager]:
        return self._buffer

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.snapshot())

    def _sort(self) -> None:
        self._items.sort(key=name_sort_key)

    def set_mode(self, mode: str) -> None:
        if mode not in (NAME_ORDER, CUSTOM_ORDER):
            raise ValueError(f"Unknown ordering mode: {mode}")
        self._mode = mode
        if mode == NAME_ORDER:
            self._sort()

    def add(self, items: Iterable[FileItem]) -> None:
        self._items.extend(items)
        if self._mode == NAME_ORDER:
            self._sort()

    def move(self, from_index: int, to_index: int) -> None:
        """Take the item at ``from_index`` out and reinsert it at ``to_index``."""
        if self._mode != CUSTOM_ORDER:
            raise ValueError("Items can only be moved in custom order")
        size = len(self._items)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise IndexError(f"move({from_index}, {to_index}) out of range for {size} items")
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)

    def remove(self, item_id: str) -> FileItem:
        for idx, item in enumerate(self._items):
            if item.id == item_id:
                del self._items[idx]
                self._release(item)
                return item
        raise KeyError(f"No item with id {item_id}")

    def clear(self) -> None:
        for item in self._items:
            self._release(item)
        self._items = []

    def snapshot(self) -> Tuple[FileItem, ...]:
        """Copy of the current sequence; later moves or removals do not touch it."""
        return tuple(replace(item) for item in self._items)

    def _release(self, item: FileItem) -> None:
        if item.handle and self._buffer is not None:
            self._buffer.release(item.handle)
            logger.debug("Released buffer handle for %s", item.name)
        item.handle = None
        item.preview = None
