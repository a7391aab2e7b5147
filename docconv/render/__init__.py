"""Rendering helpers: font loading, text layout and the cover page."""

from .cover import render_cover_page, wrap_description
from .draw import layout_lines, load_font

__all__ = [
    "render_cover_page",
    "wrap_description",
    "layout_lines",
    "load_font",
]
