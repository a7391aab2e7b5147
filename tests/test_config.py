import json
import os

import pytest

from docconv.config import load_settings
from docconv.render import draw


@pytest.fixture(autouse=True)
def _reset_font_dirs():
    yield
    draw.set_font_dirs([])


def test_missing_settings_file_gives_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "absent.json"))
    assert settings.log_level == "INFO"
    spec = settings.conversion_spec()
    assert spec.output_format == "pdf"
    assert spec.page_size == "a4"


def test_unreadable_settings_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    settings = load_settings(str(path))
    assert settings.output_dir == "."


def test_settings_values_and_overrides(tmp_path):
    (tmp_path / "fonts").mkdir()
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "log_level": "debug",
                "output_dir": "out",
                "font_dirs": ["fonts", "missing"],
                "cover": {"title": "From file", "unknown": 1},
                "conversion": {"output_format": "html", "quality": 80},
            }
        ),
        encoding="utf-8",
    )
    settings = load_settings(str(path))
    assert settings.log_level == "DEBUG"
    assert settings.font_dirs == [os.path.abspath(str(tmp_path / "fonts"))]
    assert draw._extra_font_dirs == settings.font_dirs

    cover = settings.cover_spec(author="Max", title=None)
    assert cover.title == "From file"
    assert cover.author == "Max"

    conversion = settings.conversion_spec(quality=50, orientation=None)
    assert conversion.output_format == "html"
    assert conversion.quality == 50
    assert conversion.orientation == "portrait"


def test_invalid_override_raises(tmp_path):
    settings = load_settings(str(tmp_path / "absent.json"))
    with pytest.raises(ValueError):
        settings.conversion_spec(quality=0)
