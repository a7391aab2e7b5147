"""Output format registry and bundle encoding.

Each format maps to one writer. Merged formats yield a single
``converted-documents.<ext>`` artifact (or one artifact per item when merging
is off); PNG/JPG export yields one artifact per image.
"""

from __future__ import annotations

import dataclasses
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from .csv_io import write_csv
from .docx_io import write_docx
from .html_io import write_html
from .image_io import write_images
from .json_io import write_json
from .markdown_io import write_markdown
from .model import CATEGORIES, Artifact, Bundle, ConversionSpec, CoverPageSpec, FileItem, unique_name
from .pdf_io import write_pdf
from .rtf_io import write_rtf
from .txt import write_txt

MERGED_BASENAME = "converted-documents"
DEFAULT_TITLE = "Document Collection"


class UnsupportedFormatError(ValueError):
    pass


@dataclass(frozen=True)
class OutputFormat:
    key: str
    extension: str
    mime_type: str
    writer: Optional[Callable[[Bundle], bytes]] = None
    raster: Optional[str] = None  # re-encode images to this format before writing
    cover_image: bool = False  # needs the rendered cover raster
    per_image: bool = False


FORMATS: Dict[str, OutputFormat] = {
    "pdf": OutputFormat("pdf", ".pdf", "application/pdf", write_pdf, raster="jpeg", cover_image=True),
    "docx": OutputFormat(
        "docx",
        ".docx",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        write_docx,
        raster="jpeg",
        cover_image=True,
    ),
    "txt": OutputFormat("txt", ".txt", "text/plain", write_txt),
    "html": OutputFormat("html", ".html", "text/html", write_html, raster="jpeg"),
    "md": OutputFormat("md", ".md", "text/markdown", write_markdown, raster="jpeg"),
    "csv": OutputFormat("csv", ".csv", "text/csv", write_csv),
    "json": OutputFormat("json", ".json", "application/json", write_json),
    "rtf": OutputFormat("rtf", ".rtf", "application/rtf", write_rtf),
    "png": OutputFormat("png", ".png", "image/png", raster="png", per_image=True),
    "jpg": OutputFormat("jpg", ".jpg", "image/jpeg", raster="jpeg", per_image=True),
}
ALIASES = {"markdown": "md", "jpeg": "jpg", "text": "txt", "htm": "html"}


def get_format(name: str) -> OutputFormat:
    key = (name or "").strip().lower()
    key = ALIASES.get(key, key)
    try:
        return FORMATS[key]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported output format: {name!r}") from None


def build_metadata(
    items: Sequence[FileItem],
    cover: Optional[CoverPageSpec],
    conversion: ConversionSpec,
    generated_at: str,
) -> Dict[str, Any]:
    counts = Counter(item.category for item in items)
    return {
        "title": cover.title if cover is not None else DEFAULT_TITLE,
        "author": cover.author if cover is not None else "",
        "generated_at": generated_at,
        "total_files": len(items),
        "counts": {category: counts.get(category, 0) for category in CATEGORIES},
        "conversion_settings": conversion.to_dict(),
    }


def encode_bundle(fmt: OutputFormat, bundle: Bundle) -> List[Artifact]:
    if fmt.per_image:
        return write_images(bundle, fmt.extension, fmt.mime_type)
    if bundle.conversion.merge_documents:
        name = f"{MERGED_BASENAME}{fmt.extension}"
        return [Artifact(name=name, mime_type=fmt.mime_type, data=fmt.writer(bundle))]

    artifacts: List[Artifact] = []
    taken: Dict[str, int] = {}
    for prepared in bundle.items:
        single = dataclasses.replace(bundle, items=(prepared,), cover=None, cover_image=None)
        name = unique_name(f"{prepared.item.raw.stem}{fmt.extension}", taken)
        artifacts.append(Artifact(name=name, mime_type=fmt.mime_type, data=fmt.writer(single)))
    return artifacts
