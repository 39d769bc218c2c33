"""Unit tests for the key-signature based clef classifier."""

import math

import pytest

from scorefixer.clef import FLAT_PITCHES, SHARP_PITCHES, ClefKind
from scorefixer.pitch_classifier import classify, classify_by_shape
from scorefixer.score_models import Shape


def test_exact_treble_sharps_give_treble_with_zero_error() -> None:
    kind, errors = classify(Shape.SHARP, list(SHARP_PITCHES[ClefKind.TREBLE]))
    assert kind is ClefKind.TREBLE
    assert errors[ClefKind.TREBLE] == pytest.approx(0.0)


@pytest.mark.parametrize("kind", [ClefKind.TREBLE, ClefKind.BASS, ClefKind.ALTO, ClefKind.TENOR])
def test_exact_flat_rows_are_recognized(kind: ClefKind) -> None:
    best, errors = classify(Shape.FLAT, list(FLAT_PITCHES[kind]))
    assert best is kind
    assert errors[kind] == pytest.approx(0.0)


def test_partial_key_signature() -> None:
    # Three sharps on a bass staff, slightly off
    measured = [-2.2, 0.9, -3.1, None, None, None, None]
    kind, errors = classify(Shape.SHARP, measured)
    assert kind is ClefKind.BASS
    assert set(errors) == {ClefKind.TREBLE, ClefKind.BASS, ClefKind.ALTO, ClefKind.TENOR}


def test_error_is_root_mean_square() -> None:
    measured = [-3.0, None, None, None, None, None, 1.0]
    _, errors = classify(Shape.SHARP, measured)
    # Treble reference: -4 and 0 -> diffs 1 and 1
    assert errors[ClefKind.TREBLE] == pytest.approx(1.0)
    # Tenor reference: 2 and -1 -> diffs -5 and 2
    assert errors[ClefKind.TENOR] == pytest.approx(math.sqrt((25 + 4) / 2))


def test_no_populated_slot_gives_none() -> None:
    kind, errors = classify(Shape.FLAT, [None] * 7)
    assert kind is None
    assert errors == {}


def test_nan_slots_count_as_absent() -> None:
    kind, errors = classify(Shape.FLAT, [float("nan")] * 7)
    assert kind is None
    assert errors == {}


def test_tie_keeps_first_kind_in_table_order() -> None:
    # Treble (-4) and Alto (-3) are both 0.5 away
    kind, errors = classify(Shape.SHARP, [-3.5, None, None, None, None, None, None])
    assert errors[ClefKind.TREBLE] == errors[ClefKind.ALTO]
    assert kind is ClefKind.TREBLE


def test_tie_between_bass_and_alto_keeps_bass() -> None:
    kind, errors = classify(Shape.SHARP, [-2.5, None, None, None, None, None, None])
    assert errors[ClefKind.BASS] == errors[ClefKind.ALTO]
    assert kind is ClefKind.BASS


@pytest.mark.parametrize(
    "measured",
    [
        [0.3, -2.7, None, None, 2.1, None, None],
        [None, None, None, 0.0, None, None, None],
        [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0],
        [-4.4, -0.6, -5.2, -1.9, 1.3, -2.8, 0.1],
    ],
)
def test_best_kind_has_minimal_error(measured: list[float | None]) -> None:
    for shape in (Shape.SHARP, Shape.FLAT):
        kind, errors = classify(shape, measured)
        assert kind is not None
        assert errors[kind] == min(errors.values())


def test_percussion_is_never_evaluated() -> None:
    _, errors = classify(Shape.SHARP, list(SHARP_PITCHES[ClefKind.ALTO]))
    assert ClefKind.PERCUSSION not in errors


def test_rejects_wrong_slot_count() -> None:
    with pytest.raises(ValueError):
        classify(Shape.SHARP, [0.0, 1.0])


def test_rejects_non_accidental_shape() -> None:
    with pytest.raises(ValueError):
        classify(Shape.G_CLEF, [None] * 7)


@pytest.mark.parametrize(
    ("shape", "expected"),
    [
        (Shape.G_CLEF, ClefKind.TREBLE),
        (Shape.G_CLEF_SMALL, ClefKind.TREBLE),
        (Shape.G_CLEF_8VB, ClefKind.TREBLE),
        (Shape.F_CLEF, ClefKind.BASS),
        (Shape.F_CLEF_8VA, ClefKind.BASS),
        (Shape.PERCUSSION_CLEF, ClefKind.PERCUSSION),
    ],
)
def test_classify_by_shape_unambiguous(shape: Shape, expected: ClefKind) -> None:
    assert classify_by_shape(shape, 0.0) is expected
    assert classify_by_shape(shape, -3.0) is expected


@pytest.mark.parametrize(
    ("position", "expected"),
    [
        (0.0, ClefKind.ALTO),
        (-0.5, ClefKind.ALTO),
        (-1.4, ClefKind.ALTO),
        (1.8, ClefKind.ALTO),
        (-1.6, ClefKind.TENOR),
        (-2.0, ClefKind.TENOR),
        (-4.0, ClefKind.TENOR),
    ],
)
def test_classify_by_shape_c_clef_uses_position(position: float, expected: ClefKind) -> None:
    assert classify_by_shape(Shape.C_CLEF, position) is expected


def test_classify_by_shape_non_clef() -> None:
    assert classify_by_shape(Shape.FLAT, 0.0) is None
