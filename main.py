"""
Entry point and compatibility facade for the upload → order → convert pipeline.

Packages:
- docconv.docs: file model, classification/loading, ordering store, format writers
- docconv.image: decode / enhancement / re-encode of rasters
- docconv.render: cover page rendering
- docconv.pipeline: high-level orchestration (`ConversionOrchestrator`)
"""

from __future__ import annotations

import asyncio
import os
from typing import List, Optional

from docconv.config import configure_logging, load_settings
from docconv.docs import (
    CUSTOM_ORDER,
    NAME_ORDER,
    BufferManager,
    ConversionResult,
    EnhancementSpec,
    OrderingStore,
    ingest_files,
)
from docconv.docs.ingest import read_raw_file
from docconv.docs.model import DONE, NOTHING_TO_CONVERT
from docconv.docs.pipeline import FORMATS, ALIASES
from docconv.pipeline import ConversionOrchestrator, ConversionRequest

__all__ = [
    "BufferManager",
    "ConversionOrchestrator",
    "ConversionRequest",
    "EnhancementSpec",
    "OrderingStore",
    "ingest_files",
    "convert_paths",
]


async def convert_paths(
    paths: List[str],
    request_kwargs: dict,
    order: str = NAME_ORDER,
    moves: Optional[List[tuple]] = None,
) -> ConversionResult:
    """Read files from disk, order them and run one conversion."""
    buffer = BufferManager()
    store = OrderingStore(buffer, mode=order)
    try:
        batch = await ingest_files([read_raw_file(p) for p in paths], buffer)
        for raw in batch.excluded:
            print(f"Skipped unsupported file: {raw.name}")
        store.add(batch.accepted)
        for src, dst in moves or []:
            store.move(src, dst)
        orchestrator = ConversionOrchestrator()
        return await orchestrator.convert(ConversionRequest.from_store(store, **request_kwargs))
    finally:
        store.clear()
        buffer.cleanup()


def _parse_move(value: str) -> tuple:
    src, _, dst = value.partition(":")
    return int(src), int(dst)


def _cli() -> int:
    """CLI for converting a set of files into one output format.

    --format / -f: Output format (pdf|docx|txt|html|md|csv|json|rtf|png|jpg)
    --out-dir / -o: Directory to write artifacts into (default from settings)
    --order: name|custom (default: name); --move FROM:TO reorders in custom mode
    --cover plus --title/--subtitle/--author/--date/--description/--bg-color/--text-color
    --quality, --page-size, --orientation, --no-merge, --metadata, --compression
    --brightness, --contrast, --sharpness, --auto-enhance, --denoise
    """
    import argparse

    parser = argparse.ArgumentParser(description="Combine images, text documents and PDFs into one output file.")
    parser.add_argument("files", nargs="+", help="Input files, in upload order")
    parser.add_argument("--format", "-f", type=str, default=None, choices=sorted(set(FORMATS) | set(ALIASES)), help="Output format (default from settings: pdf)")
    parser.add_argument("--out-dir", "-o", type=str, default=None, help="Directory for produced files")
    parser.add_argument("--config", type=str, default=None, help="Path to settings.json")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default from settings: INFO)")
    # ordering
    parser.add_argument("--order", type=str, default=NAME_ORDER, choices=[NAME_ORDER, CUSTOM_ORDER], help="Ordering mode (default: name)")
    parser.add_argument("--move", type=_parse_move, action="append", default=[], metavar="FROM:TO", help="Move item FROM to index TO (custom order only)")
    # cover page
    parser.add_argument("--cover", action="store_true", help="Prepend a generated cover page")
    parser.add_argument("--title", type=str, default=None)
    parser.add_argument("--subtitle", type=str, default=None)
    parser.add_argument("--author", type=str, default=None)
    parser.add_argument("--date", type=str, default=None)
    parser.add_argument("--description", type=str, default=None)
    parser.add_argument("--bg-color", type=str, default=None, help="Cover background colour, e.g. #ffffff")
    parser.add_argument("--text-color", type=str, default=None, help="Cover text colour, e.g. #000000")
    # conversion
    parser.add_argument("--quality", type=int, default=None, help="Lossy image quality 1-100 (default: 95)")
    parser.add_argument("--page-size", type=str, default=None, help="a4|letter|legal|a3|a5 (default: a4)")
    parser.add_argument("--orientation", type=str, default=None, choices=["portrait", "landscape"])
    parser.add_argument("--no-merge", action="store_true", help="Write one output file per input item")
    parser.add_argument("--metadata", action="store_true", help="Include metadata in the output")
    parser.add_argument("--compression", type=int, default=None, help="Compression level 0-9 (default: 6)")
    # enhancement
    parser.add_argument("--brightness", type=int, default=0, help="Brightness offset -50..50")
    parser.add_argument("--contrast", type=int, default=0, help="Contrast offset -50..50")
    parser.add_argument("--sharpness", type=int, default=0, help="Sharpening 0..10")
    parser.add_argument("--auto-enhance", action="store_true")
    parser.add_argument("--denoise", action="store_true")

    args = parser.parse_args()

    settings = load_settings(args.config)
    configure_logging(args.log_level or settings.log_level)

    try:
        conversion = settings.conversion_spec(
            output_format=args.format,
            quality=args.quality,
            page_size=args.page_size,
            orientation=args.orientation,
            merge_documents=False if args.no_merge else None,
            include_metadata=True if args.metadata else None,
            compression=args.compression,
        )
        enhancement = EnhancementSpec(
            brightness=args.brightness,
            contrast=args.contrast,
            sharpness=args.sharpness,
            auto_enhance=args.auto_enhance,
            denoise=args.denoise,
        )
        cover = None
        if args.cover:
            cover = settings.cover_spec(
                title=args.title,
                subtitle=args.subtitle,
                author=args.author,
                date=args.date,
                description=args.description,
                background_color=args.bg_color,
                text_color=args.text_color,
            )
    except ValueError as e:
        print(str(e))
        return 2

    for path in args.files:
        if not os.path.isfile(path):
            print(f"File not found: {path}")
            return 2

    try:
        result = asyncio.run(
            convert_paths(
                args.files,
                {"conversion": conversion, "enhancement": enhancement, "cover": cover},
                order=args.order,
                moves=args.move,
            )
        )
    except (ValueError, IndexError) as e:
        print(str(e))
        return 2

    if result.status == NOTHING_TO_CONVERT:
        print(result.message)
        return 0
    if result.status != DONE:
        print(f"Conversion failed: {result.message}")
        return 1

    out_dir = args.out_dir or settings.output_dir
    os.makedirs(out_dir, exist_ok=True)
    for artifact in result.artifacts:
        out_path = os.path.join(out_dir, artifact.name)
        with open(out_path, "wb") as f:
            f.write(artifact.data)
        print(f"{artifact.mime_type}: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(_cli())
