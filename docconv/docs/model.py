from __future__ import annotations

import datetime as _dt
import os
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .buffer import BufferManager

IMAGE = "image"
DOCUMENT = "document"
PDF = "pdf"
CATEGORIES = (IMAGE, DOCUMENT, PDF)

# Page sizes in PDF points, portrait.
PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "a4": (595.0, 842.0),
    "letter": (612.0, 792.0),
    "legal": (612.0, 1008.0),
    "a3": (842.0, 1191.0),
    "a5": (420.0, 595.0),
}
ORIENTATIONS = ("portrait", "landscape")


@dataclass(frozen=True)
class RawFile:
    name: str
    media_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def stem(self) -> str:
        return os.path.splitext(self.name)[0] or self.name


@dataclass
class FileItem:
    id: str
    raw: RawFile
    category: str
    text_content: Optional[str] = None
    preview: Optional[str] = None
    handle: Optional[str] = None

    @property
    def name(self) -> str:
        return self.raw.name

    @property
    def size(self) -> int:
        return self.raw.size


@dataclass(frozen=True)
class CoverPageSpec:
    title: str = "Document Collection"
    subtitle: str = ""
    author: str = ""
    date: str = field(default_factory=lambda: _dt.date.today().strftime("%m/%d/%Y"))
    description: str = ""
    background_color: str = "#ffffff"
    text_color: str = "#000000"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EnhancementSpec:
    brightness: int = 0
    contrast: int = 0
    sharpness: int = 0
    auto_enhance: bool = False
    denoise: bool = False

    def __post_init__(self) -> None:
        if not -50 <= self.brightness <= 50:
            raise ValueError(f"brightness must be within [-50, 50], got {self.brightness}")
        if not -50 <= self.contrast <= 50:
            raise ValueError(f"contrast must be within [-50, 50], got {self.contrast}")
        if not 0 <= self.sharpness <= 10:
            raise ValueError(f"sharpness must be within [0, 10], got {self.sharpness}")

    @property
    def is_active(self) -> bool:
        return bool(self.brightness or self.contrast or self.sharpness or self.auto_enhance or self.denoise)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConversionSpec:
    output_format: str = "pdf"
    quality: int = 95
    page_size: str = "a4"
    orientation: str = "portrait"
    merge_documents: bool = True
    include_metadata: bool = False
    compression: int = 6

    def __post_init__(self) -> None:
        # output_format is checked by the orchestrator, not here
        if not 1 <= self.quality <= 100:
            raise ValueError(f"quality must be within [1, 100], got {self.quality}")
        if not 0 <= self.compression <= 9:
            raise ValueError(f"compression must be within [0, 9], got {self.compression}")
        if self.page_size not in PAGE_SIZES:
            raise ValueError(f"Unknown page size: {self.page_size}")
        if self.orientation not in ORIENTATIONS:
            raise ValueError(f"Unknown orientation: {self.orientation}")

    @property
    def page_dimensions(self) -> Tuple[float, float]:
        width, height = PAGE_SIZES[self.page_size]
        if self.orientation == "landscape":
            return height, width
        return width, height

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PreparedItem:
    """A FileItem paired with its re-encoded raster (image items only)."""

    item: FileItem
    image_bytes: Optional[bytes] = field(default=None, repr=False)
    image_mime: Optional[str] = None


@dataclass(frozen=True)
class Bundle:
    """Everything an encoder is allowed to see for one conversion run."""

    items: Tuple[PreparedItem, ...]
    conversion: ConversionSpec
    enhancement: EnhancementSpec = field(default_factory=EnhancementSpec)
    cover: Optional[CoverPageSpec] = None
    cover_image: Optional[bytes] = field(default=None, repr=False)
    metadata: Optional[Dict[str, Any]] = None
    generated_at: str = ""
    # live handle registry, used to tell whether an image reference is still valid
    buffer: Optional["BufferManager"] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class Artifact:
    name: str
    mime_type: str
    data: bytes = field(repr=False)


def unique_name(name: str, taken: Dict[str, int]) -> str:
    """Return ``name``, or ``stem-N.ext`` when an earlier artifact already took it.

    ``taken`` maps every name handed out so far to its last used suffix.
    """
    stem, ext = os.path.splitext(name)
    count = taken.get(name, 0)
    candidate = name
    while candidate in taken:
        count = max(count, 1) + 1
        candidate = f"{stem}-{count}{ext}"
    taken[name] = max(count, 1)
    taken[candidate] = max(taken.get(candidate, 0), 1)
    return candidate


DONE = "done"
FAILED = "failed"
NOTHING_TO_CONVERT = "nothing_to_convert"


@dataclass
class ConversionResult:
    status: str
    artifacts: List[Artifact] = field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == DONE
