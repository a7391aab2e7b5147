import pytest

from docconv.docs.model import ConversionSpec, CoverPageSpec, EnhancementSpec, unique_name


@pytest.mark.parametrize(
    "kwargs",
    [
        {"brightness": -51},
        {"brightness": 51},
        {"contrast": -51},
        {"contrast": 51},
        {"sharpness": -1},
        {"sharpness": 11},
    ],
)
def test_enhancement_spec_rejects_out_of_range(kwargs):
    with pytest.raises(ValueError):
        EnhancementSpec(**kwargs)


def test_enhancement_spec_accepts_bounds():
    low = EnhancementSpec(brightness=-50, contrast=-50, sharpness=0)
    high = EnhancementSpec(brightness=50, contrast=50, sharpness=10)
    assert not EnhancementSpec().is_active
    assert low.is_active and high.is_active


@pytest.mark.parametrize(
    "kwargs",
    [
        {"quality": 0},
        {"quality": 101},
        {"compression": -1},
        {"compression": 10},
        {"page_size": "b5"},
        {"orientation": "sideways"},
    ],
)
def test_conversion_spec_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ConversionSpec(**kwargs)


def test_conversion_spec_bounds_and_landscape():
    assert ConversionSpec(quality=1, compression=0).quality == 1
    assert ConversionSpec(quality=100, compression=9).compression == 9
    assert ConversionSpec(page_size="letter").page_dimensions == (612.0, 792.0)
    assert ConversionSpec(page_size="letter", orientation="landscape").page_dimensions == (792.0, 612.0)


def test_cover_spec_defaults():
    cover = CoverPageSpec()
    assert cover.title == "Document Collection"
    assert cover.author == ""
    assert len(cover.date.split("/")) == 3


def test_unique_name_suffixes_repeats():
    taken = {}
    names = [unique_name(n, taken) for n in ["scan.png", "scan.png", "scan.png", "other.png"]]
    assert names == ["scan.png", "scan-2.png", "scan-3.png", "other.png"]


def test_unique_name_never_reuses_an_uploaded_name():
    taken = {}
    names = [unique_name(n, taken) for n in ["scan.png", "scan-2.png", "scan.png", "README", "README"]]
    assert len(set(names)) == len(names)
    assert names[2] == "scan-3.png"
    assert names[4] == "README-2"
