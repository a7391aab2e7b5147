"""Conversion orchestration: snapshot → metadata → cover → per-item prep → encode.

One run at a time. Per-item work runs in worker threads, but results are
collected strictly in item order so page N never lands before page N-1.
"""

from __future__ import annotations

import asyncio
import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from docconv.docs.model import (
    DONE,
    FAILED,
    IMAGE,
    NOTHING_TO_CONVERT,
    Bundle,
    ConversionResult,
    ConversionSpec,
    CoverPageSpec,
    EnhancementSpec,
    FileItem,
    PreparedItem,
)
from docconv.docs.buffer import BufferManager
from docconv.docs.ordering import OrderingStore
from docconv.docs.pipeline import OutputFormat, build_metadata, encode_bundle, get_format
from docconv.image.processing import FORMAT_MIME, prepare_image
from docconv.render.cover import render_cover_page

logger = logging.getLogger(__name__)

IDLE = "idle"
RUNNING = "running"


@dataclass(frozen=True)
class ConversionRequest:
    items: Tuple[FileItem, ...]
    conversion: ConversionSpec = field(default_factory=ConversionSpec)
    enhancement: EnhancementSpec = field(default_factory=EnhancementSpec)
    cover: Optional[CoverPageSpec] = None
    buffer: Optional[BufferManager] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_store(cls, store: OrderingStore, **kwargs) -> "ConversionRequest":
        kwargs.setdefault("buffer", store.buffer)
        return cls(items=store.snapshot(), **kwargs)


class ConversionOrchestrator:
    """State machine ``idle → running → done|failed → idle``.

    A request arriving while a run is in flight is ignored (``convert`` returns
    None); it is not queued.
    """

    def __init__(self) -> None:
        self.state = IDLE
        self.last_result: Optional[ConversionResult] = None
        self.history: List[str] = []

    @property
    def busy(self) -> bool:
        return self.state == RUNNING

    def _set_state(self, state: str) -> None:
        self.state = state
        self.history.append(state)

    async def convert(self, request: ConversionRequest) -> Optional[ConversionResult]:
        if self.state == RUNNING:
            logger.info("Conversion already running; request ignored")
            return None
        self._set_state(RUNNING)
        items = tuple(request.items)
        try:
            result = await self._run(request, items)
        except Exception as exc:
            logger.error("Conversion to %r failed: %s", request.conversion.output_format, exc, exc_info=True)
            result = ConversionResult(status=FAILED, message=str(exc))
        self._set_state(FAILED if result.status == FAILED else DONE)
        self.last_result = result
        self._set_state(IDLE)
        return result

    async def _run(self, request: ConversionRequest, items: Tuple[FileItem, ...]) -> ConversionResult:
        fmt = get_format(request.conversion.output_format)
        if not items:
            return ConversionResult(status=NOTHING_TO_CONVERT, message="No files to convert")
        if fmt.per_image and not any(item.category == IMAGE for item in items):
            logger.info("No image files for %s export", fmt.key)
            return ConversionResult(status=NOTHING_TO_CONVERT, message="No image files to convert")

        generated_at = _dt.datetime.now().isoformat(timespec="seconds")
        metadata = None
        if request.conversion.include_metadata:
            metadata = build_metadata(items, request.cover, request.conversion, generated_at)

        use_cover = request.cover is not None and not fmt.per_image and request.conversion.merge_documents
        cover_image = None
        if use_cover and fmt.cover_image:
            cover_image = await asyncio.to_thread(render_cover_page, request.cover)

        prepared = await self._prepare_items(items, fmt, request)
        bundle = Bundle(
            items=prepared,
            conversion=request.conversion,
            enhancement=request.enhancement,
            cover=request.cover if use_cover else None,
            cover_image=cover_image,
            metadata=metadata,
            generated_at=generated_at,
            buffer=request.buffer,
        )
        artifacts = await asyncio.to_thread(encode_bundle, fmt, bundle)
        logger.info("Produced %d %s artifact(s) from %d item(s)", len(artifacts), fmt.key, len(items))
        return ConversionResult(status=DONE, artifacts=artifacts)

    async def _prepare_items(
        self,
        items: Sequence[FileItem],
        fmt: OutputFormat,
        request: ConversionRequest,
    ) -> Tuple[PreparedItem, ...]:
        tasks = [asyncio.create_task(self._prepare(item, fmt, request)) for item in items]
        prepared: List[PreparedItem] = []
        try:
            # await in item order, not completion order
            for task in tasks:
                prepared.append(await task)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return tuple(prepared)

    async def _prepare(self, item: FileItem, fmt: OutputFormat, request: ConversionRequest) -> PreparedItem:
        if item.category != IMAGE or fmt.raster is None:
            return PreparedItem(item=item)
        data = await asyncio.to_thread(
            prepare_image,
            item.raw.data,
            request.enhancement,
            fmt.raster,
            request.conversion.quality,
            request.conversion.compression,
        )
        return PreparedItem(item=item, image_bytes=data, image_mime=FORMAT_MIME[fmt.raster])
