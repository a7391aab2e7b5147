"""Document layer: data model, ingestion, ordering and the output encoders.

Exposes:
- Data model: RawFile, FileItem, CoverPageSpec, EnhancementSpec, ConversionSpec
- Buffer manager: BufferManager (byte handles for image previews)
- Ingestion: classify_file, ingest_files
- Ordering: OrderingStore
- Writers: txt, csv, json, rtf, html, markdown, pdf, docx, per-image
"""

from .buffer import BufferManager
from .ingest import IngestResult, classify_file, ingest_files, load_item
from .model import (
    Artifact,
    ConversionResult,
    ConversionSpec,
    CoverPageSpec,
    EnhancementSpec,
    FileItem,
    RawFile,
)
from .ordering import CUSTOM_ORDER, NAME_ORDER, OrderingStore

__all__ = [
    "Artifact",
    "BufferManager",
    "ConversionResult",
    "ConversionSpec",
    "CoverPageSpec",
    "CUSTOM_ORDER",
    "EnhancementSpec",
    "FileItem",
    "IngestResult",
    "NAME_ORDER",
    "OrderingStore",
    "RawFile",
    "classify_file",
    "ingest_files",
    "load_item",
]
