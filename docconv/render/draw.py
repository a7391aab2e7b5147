"""Font resolution and greedy line layout shared by the cover and PDF writers."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Callable, List, Optional, Sequence

from PIL import ImageFont

logger = logging.getLogger(__name__)

_ROOT_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
_CONFIG_FONTS_DIR = os.path.join(_ROOT_DIR, "config", "fonts")

REGULAR_FONTS = [
    "arial.ttf",
    "Arial.ttf",
    "DejaVuSans.ttf",
    "LiberationSans-Regular.ttf",
    "segoeui.ttf",
    "verdana.ttf",
]
BOLD_FONTS = [
    "arialbd.ttf",
    "Arial Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
    "segoeuib.ttf",
    "verdanab.ttf",
]

_extra_font_dirs: List[str] = []


def set_font_dirs(dirs: Sequence[str]) -> None:
    """Register extra font directories (from settings) ahead of the system ones."""
    _extra_font_dirs[:] = [d for d in dirs if d]
    _find_font_path.cache_clear()
    load_font.cache_clear()


def _candidate_dirs() -> List[str]:
    dirs: List[str] = list(_extra_font_dirs)
    env_paths = os.environ.get("FONT_PATH", "")
    dirs.extend(p for p in env_paths.split(";") if p.strip())
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    if windir:
        dirs.append(os.path.join(windir, "Fonts"))
    dirs.extend([
        "/usr/share/fonts/truetype/dejavu",
        "/usr/share/fonts/truetype/liberation",
        "/usr/share/fonts/TTF",
        "/Library/Fonts",
        "/System/Library/Fonts/Supplemental",
        _CONFIG_FONTS_DIR,
    ])
    return dirs


@lru_cache(maxsize=64)
def _find_font_path(name: str) -> Optional[str]:
    if os.path.isabs(name) and os.path.exists(name):
        return name
    wanted = name.lower()
    for d in _candidate_dirs():
        if not os.path.isdir(d):
            continue
        for fname in os.listdir(d):
            if fname.lower() == wanted:
                return os.path.join(d, fname)
    return None


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """Load the first available candidate font at ``size`` pixels.

    Falls back to Pillow's bundled scalable default when no system font is found.
    """
    for name in (BOLD_FONTS if bold else REGULAR_FONTS):
        path = _find_font_path(name)
        if not path:
            continue
        try:
            return ImageFont.truetype(path, size)
        except OSError as exc:
            logger.debug("Font %s unusable: %s", path, exc)
    logger.debug("No system font found, using Pillow default at size %d", size)
    return ImageFont.load_default(size)


def layout_lines(text: str, measure: Callable[[str], float], max_width: float) -> List[str]:
    """Greedily pack words onto lines no wider than ``max_width``.

    A single word wider than the budget gets its own line. Explicit newlines
    start a new line; blank input lines are kept as empty strings.
    """
    lines: List[str] = []
    for paragraph in str(text).splitlines() or [""]:
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        cur = ""
        for word in words:
            candidate = (cur + " " + word) if cur else word
            if measure(candidate) <= max_width:
                cur = candidate
            else:
                if cur:
                    lines.append(cur)
                cur = word
        if cur:
            lines.append(cur)
    return lines
