"""Pitch classifier: guesses the clef kind that best explains measured key-signature pitches."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from scorefixer.clef import (
    BASS_SHAPES,
    FLAT_PITCHES,
    KEY_SLOTS,
    SHARP_PITCHES,
    TREBLE_SHAPES,
    ClefKind,
)
from scorefixer.score_models import Shape

logger = logging.getLogger(__name__)


def classify(
    shape: Shape,
    measured_pitches: Sequence[float | None],
) -> tuple[ClefKind | None, dict[ClefKind, float]]:
    """
    Find the clef kind whose key-signature pattern best fits measured pitches.

    Algorithm overview
    ------------------
    Each of the 7 slots holds the pitch position measured for one canonical
    accidental of a key signature, or None when that accidental is absent.
    For every clef kind of the reference table selected by ``shape``, the
    root-mean-square error between populated slots and the reference row is
    computed. The kind with the smallest error wins.

    On an exact tie, the kind met first in table order (Treble, Bass, Alto,
    Tenor) is kept.

    Args:
        shape:            Shape.SHARP or Shape.FLAT.
        measured_pitches: 7 measured pitch positions, None (or NaN) for absent slots.

    Returns:
        (best kind or None, error per evaluated kind). None means no slot
        was populated and the caller has to decide what clef applies.

    Raises:
        ValueError: On a non-accidental shape or a wrong slot count.
    """
    if shape is Shape.SHARP:
        table = SHARP_PITCHES
    elif shape is Shape.FLAT:
        table = FLAT_PITCHES
    else:
        raise ValueError(f"Expected SHARP or FLAT shape, got {shape.name}")

    if len(measured_pitches) != KEY_SLOTS:
        raise ValueError(f"Expected {KEY_SLOTS} measured pitches, got {len(measured_pitches)}")

    measured = np.array(
        [np.nan if pitch is None else float(pitch) for pitch in measured_pitches],
        dtype=float,
    )
    populated = ~np.isnan(measured)

    errors: dict[ClefKind, float] = {}
    best_kind: ClefKind | None = None
    best_error = math.inf

    if populated.any():
        for kind, pitches in table.items():
            reference = np.asarray(pitches, dtype=float)
            diff = measured[populated] - reference[populated]
            error = float(np.sqrt(np.mean(diff * diff)))
            errors[kind] = error

            if error < best_error:
                best_error = error
                best_kind = kind

    logger.debug("%s results: %s", best_kind, errors)
    return best_kind, errors


def classify_by_shape(shape: Shape, pitch_position: float) -> ClefKind | None:
    """
    Map a clef shape to its kind, using the glyph position for C-clefs.

    A C-clef centered on the middle line (or above) is an Alto clef, one
    centered lower is a Tenor clef.

    Args:
        shape:          Clef shape assigned by the recognizer.
        pitch_position: Staff pitch position of the glyph center.

    Returns:
        The clef kind, or None for a non-clef shape.
    """
    if shape in TREBLE_SHAPES:
        return ClefKind.TREBLE
    if shape in BASS_SHAPES:
        return ClefKind.BASS
    if shape is Shape.PERCUSSION_CLEF:
        return ClefKind.PERCUSSION
    if shape is Shape.C_CLEF:
        position = int(round(pitch_position))
        return ClefKind.ALTO if position >= -1 else ClefKind.TENOR
    return None
