import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from docconv.docs.model import ConversionSpec, CoverPageSpec
from docconv.render.draw import set_font_dirs

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SETTINGS_PATH = os.path.join(PROJECT_ROOT, "config", "settings.json")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    log_level: str = "INFO"
    output_dir: str = "."
    font_dirs: List[str] = field(default_factory=list)
    cover: Dict[str, Any] = field(default_factory=dict)
    conversion: Dict[str, Any] = field(default_factory=dict)

    def cover_spec(self, **overrides: Any) -> CoverPageSpec:
        return CoverPageSpec(**_merge(CoverPageSpec, self.cover, overrides))

    def conversion_spec(self, **overrides: Any) -> ConversionSpec:
        return ConversionSpec(**_merge(ConversionSpec, self.conversion, overrides))


def _merge(cls, base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    merged = {k: v for k, v in base.items() if k in known}
    merged.update({k: v for k, v in overrides.items() if k in known and v is not None})
    return merged


def _resolve_path(base: str, relative: str) -> str:
    return os.path.abspath(os.path.join(base, relative))


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from config/settings.json (or ``path``); defaults if missing or unreadable."""
    settings_path = path or SETTINGS_PATH
    settings = Settings()

    if not os.path.exists(settings_path):
        logger.warning("settings.json not found at %s, using defaults", settings_path)
        return settings

    try:
        with open(settings_path, "r", encoding="utf-8") as settings_file:
            raw = json.load(settings_file) or {}
    except (OSError, ValueError) as exc:
        logger.warning("Could not load settings from %s: %s", settings_path, exc)
        return settings

    settings.log_level = str(raw.get("log_level", settings.log_level)).upper()
    settings.output_dir = str(raw.get("output_dir", settings.output_dir))
    settings.cover = dict(raw.get("cover") or {})
    settings.conversion = dict(raw.get("conversion") or {})

    base = os.path.dirname(os.path.abspath(settings_path))
    for rel in raw.get("font_dirs") or []:
        candidate = _resolve_path(base, rel)
        if os.path.isdir(candidate):
            settings.font_dirs.append(candidate)
        else:
            logger.warning("Font directory from settings does not exist: %s", candidate)
    set_font_dirs(settings.font_dirs)
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
