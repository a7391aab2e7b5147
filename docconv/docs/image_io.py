from __future__ import annotations

import logging
from typing import Dict, List

from .model import IMAGE, Artifact, Bundle, unique_name

logger = logging.getLogger(__name__)


def write_images(bundle: Bundle, extension: str, mime_type: str) -> List[Artifact]:
    """One artifact per image item, named after the source file; other items are skipped.

    Images sharing a stem (scan.jpg, scan.png) get -2, -3 suffixes.
    """
    artifacts: List[Artifact] = []
    taken: Dict[str, int] = {}
    for prepared in bundle.items:
        item = prepared.item
        if item.category != IMAGE:
            logger.debug("Skipping non-image item %s", item.name)
            continue
        if prepared.image_bytes is None:
            raise RuntimeError(f"Image {item.name} was not prepared for export")
        name = unique_name(f"{item.raw.stem}{extension}", taken)
        artifacts.append(Artifact(name=name, mime_type=mime_type, data=prepared.image_bytes))
    return artifacts
