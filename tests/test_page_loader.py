"""Unit tests for the JSON page loader."""

import json
from fractions import Fraction
from pathlib import Path

import pytest

from scorefixer.errors import PageFormatError
from scorefixer.page_loader import load_page, page_from_dict
from scorefixer.score_models import Shape


def _sample_data() -> dict:
    return {
        "systems": [
            {
                "parts": [
                    {
                        "id": "P1",
                        "staves": [{"id": 1, "top": 100.0, "interline": 20.0}],
                        "measures": [
                            {
                                "id": 1,
                                "time_signatures": {
                                    "1": {
                                        "numerator": 4,
                                        "denominator": 4,
                                        "manual": True,
                                        "glyph": {"id": 12, "shape": "FLAT", "location": [40, 120]},
                                    }
                                },
                                "voices": [
                                    {"id": 1, "inferred": "3/4"},
                                    {"id": 2, "durations": ["1/4", "1/2"]},
                                    {"id": 3},
                                ],
                            },
                            {"id": 2},
                        ],
                    }
                ]
            }
        ]
    }


def test_page_from_dict_builds_hierarchy() -> None:
    page = page_from_dict(_sample_data())
    part = page.systems[0].parts[0]
    assert part.id == "P1"
    assert part.staves[0].interline == 20.0
    assert [m.id for m in part.measures] == [1, 2]

    sig = part.measures[0].time_signature(part.staves[0])
    assert sig is not None
    assert sig.manual is True
    assert sig.value == Fraction(1)
    assert sig.glyph is not None and sig.glyph.shape is Shape.FLAT
    assert sig.glyph.location == (40.0, 120.0)


def test_page_from_dict_voices() -> None:
    voices = page_from_dict(_sample_data()).systems[0].parts[0].measures[0].voices
    assert [v.inferred_time_signature for v in voices] == [Fraction(3, 4), Fraction(3, 4), None]


def test_missing_systems_key() -> None:
    with pytest.raises(PageFormatError, match="systems"):
        page_from_dict({})


def test_missing_numerator() -> None:
    data = _sample_data()
    del data["systems"][0]["parts"][0]["measures"][0]["time_signatures"]["1"]["numerator"]
    with pytest.raises(PageFormatError, match="numerator"):
        page_from_dict(data)


def test_invalid_fraction() -> None:
    data = _sample_data()
    data["systems"][0]["parts"][0]["measures"][0]["voices"][0]["inferred"] = "three/4"
    with pytest.raises(PageFormatError):
        page_from_dict(data)


def test_unknown_glyph_shape() -> None:
    data = _sample_data()
    data["systems"][0]["parts"][0]["measures"][0]["time_signatures"]["1"]["glyph"]["shape"] = "BLOB"
    with pytest.raises(PageFormatError):
        page_from_dict(data)


def test_non_integer_measure_id() -> None:
    data = _sample_data()
    data["systems"][0]["parts"][0]["measures"][1]["id"] = "second"
    with pytest.raises(PageFormatError):
        page_from_dict(data)


def test_not_an_object() -> None:
    with pytest.raises(PageFormatError):
        page_from_dict([])  # type: ignore[arg-type]


def test_load_page_from_file(tmp_path: Path) -> None:
    path = tmp_path / "page.json"
    path.write_text(json.dumps(_sample_data()), encoding="utf-8")
    page = load_page(path)
    assert len(page.vertical_measures()) == 2


def test_load_page_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "page.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PageFormatError):
        load_page(path)


def _first_signature(data: dict) -> dict:
    return data["systems"][0]["parts"][0]["measures"][0]["time_signatures"]["1"]


@pytest.mark.parametrize("flag", ["false", "true", 0, 1])
def test_manual_flag_must_be_boolean(flag: object) -> None:
    data = _sample_data()
    _first_signature(data)["manual"] = flag
    with pytest.raises(PageFormatError, match="manual"):
        page_from_dict(data)


@pytest.mark.parametrize("numerator", [3.9, "3", None])
def test_numerator_must_be_integer(numerator: object) -> None:
    data = _sample_data()
    _first_signature(data)["numerator"] = numerator
    with pytest.raises(PageFormatError, match="numerator"):
        page_from_dict(data)


def test_signature_on_unknown_staff() -> None:
    data = _sample_data()
    signatures = data["systems"][0]["parts"][0]["measures"][0]["time_signatures"]
    signatures["7"] = signatures.pop("1")
    with pytest.raises(PageFormatError, match="unknown staff 7"):
        page_from_dict(data)


def test_non_numeric_staff_key() -> None:
    data = _sample_data()
    signatures = data["systems"][0]["parts"][0]["measures"][0]["time_signatures"]
    signatures["top"] = signatures.pop("1")
    with pytest.raises(PageFormatError):
        page_from_dict(data)


def test_unknown_key_is_rejected() -> None:
    data = _sample_data()
    _first_signature(data)["numerater"] = 3
    with pytest.raises(PageFormatError):
        page_from_dict(data)


def test_glyph_grade_out_of_range() -> None:
    data = _sample_data()
    _first_signature(data)["glyph"]["grade"] = 1.5
    with pytest.raises(PageFormatError):
        page_from_dict(data)
