"""Clef model: clef kinds, key-signature reference tables, and pitch to note mapping."""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field, replace
from enum import Enum

from scorefixer.score_models import Glyph, Shape, Staff

logger = logging.getLogger(__name__)

# Number of accidental slots in a key signature
KEY_SLOTS = 7


class ClefKind(Enum):
    """
    Concrete clef kinds, with their reference shape and reference line.

    The reference line is the pitch position of the line the clef sits on:
    +2 for Treble, -2 for Bass and Tenor, 0 for Alto.
    """

    TREBLE = (Shape.G_CLEF, 2)
    BASS = (Shape.F_CLEF, -2)
    ALTO = (Shape.C_CLEF, 0)
    TENOR = (Shape.C_CLEF, -2)
    PERCUSSION = (Shape.PERCUSSION_CLEF, 0)

    def __init__(self, shape: Shape, pitch: int) -> None:
        self.shape = shape
        self.pitch = pitch


class Step(Enum):
    """Note steps, in the order used by the pitch formulas (index 0 = A)."""

    A = 0
    B = 1
    C = 2
    D = 3
    E = 4
    F = 5
    G = 6


# ── Reference tables ─────────────────────────────────────────────────────────
# Pitch positions of the 7 key-signature accidentals, per clef kind.
# Percussion has no entry.

SHARP_PITCHES: dict[ClefKind, tuple[int, ...]] = {
    ClefKind.TREBLE: (-4, -1, -5, -2, 1, -3, 0),
    ClefKind.BASS: (-2, 1, -3, 0, 3, -1, 2),
    ClefKind.ALTO: (-3, 0, -4, -1, 2, -2, 1),
    ClefKind.TENOR: (2, -2, 1, -3, 0, -4, -1),
}

FLAT_PITCHES: dict[ClefKind, tuple[int, ...]] = {
    ClefKind.TREBLE: (0, -3, 1, -2, 2, -1, 3),
    ClefKind.BASS: (2, -1, 3, 0, 4, 1, 5),
    ClefKind.ALTO: (1, -2, 2, -1, 3, 0, 4),
    ClefKind.TENOR: (-1, -4, 0, -3, 1, -2, 2),
}

TREBLE_SHAPES = frozenset({Shape.G_CLEF, Shape.G_CLEF_SMALL, Shape.G_CLEF_8VA, Shape.G_CLEF_8VB})
BASS_SHAPES = frozenset({Shape.F_CLEF, Shape.F_CLEF_SMALL, Shape.F_CLEF_8VA, Shape.F_CLEF_8VB})
CLEF_SHAPES = TREBLE_SHAPES | BASS_SHAPES | {Shape.C_CLEF, Shape.PERCUSSION_CLEF}

# Octave displacement of ottava clef variants
OCTAVE_SHIFTS: dict[Shape, int] = {
    Shape.G_CLEF_8VA: 1,
    Shape.G_CLEF_8VB: -1,
    Shape.F_CLEF_8VA: 1,
    Shape.F_CLEF_8VB: -1,
}


@dataclass(frozen=True)
class Clef:
    """
    An immutable clef interpretation.

    Attributes:
        shape:     Shape of the clef symbol (ottava variants included).
        kind:      Concrete clef kind.
        pitch:     Pitch position of the clef reference line on its staff.
        grade:     Interpretation quality in [0, 1].
        glyph:     Source glyph, None for default or replicated clefs.
        staff_ref: Weak reference to the owning staff; the staff owns the clef.
    """

    shape: Shape
    kind: ClefKind
    pitch: int
    grade: float = 1.0
    glyph: Glyph | None = None
    staff_ref: weakref.ReferenceType[Staff] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.grade <= 1.0:
            raise ValueError(f"Clef grade must lie in [0, 1], got {self.grade}")

    @classmethod
    def on_staff(
        cls,
        staff: Staff | None,
        shape: Shape,
        kind: ClefKind,
        pitch: int,
        grade: float = 1.0,
        glyph: Glyph | None = None,
    ) -> Clef:
        """Build a clef bound (weakly) to the given staff."""
        staff_ref = weakref.ref(staff) if staff is not None else None
        return cls(shape=shape, kind=kind, pitch=pitch, grade=grade, glyph=glyph, staff_ref=staff_ref)

    @classmethod
    def create(cls, glyph: Glyph, shape: Shape, grade: float, staff: Staff) -> Clef | None:
        """
        Create the clef interpretation of a recognized glyph.

        A C-clef takes the pitch position of the glyph center, which tells
        an Alto clef from a Tenor one.

        Returns:
            The created clef, or None if ``shape`` is not a clef shape.
        """
        from scorefixer.pitch_classifier import classify_by_shape

        if shape in TREBLE_SHAPES:
            return cls.on_staff(staff, shape, ClefKind.TREBLE, 2, grade, glyph)
        if shape in BASS_SHAPES:
            return cls.on_staff(staff, shape, ClefKind.BASS, -2, grade, glyph)
        if shape is Shape.PERCUSSION_CLEF:
            return cls.on_staff(staff, shape, ClefKind.PERCUSSION, 0, grade, glyph)
        if shape is Shape.C_CLEF:
            position = staff.pitch_position_of(glyph.location)
            kind = classify_by_shape(shape, position)
            return cls.on_staff(staff, shape, kind, int(round(position)), grade, glyph)
        logger.debug("No clef interpretation for shape %s", shape.name)
        return None

    @property
    def staff(self) -> Staff | None:
        """The owning staff, or None if unbound or already collected."""
        return self.staff_ref() if self.staff_ref is not None else None

    def replicate(self, target_staff: Staff) -> Clef:
        """
        Replicate this clef onto a staff that shows no clef symbol of its own.

        The copy has no source glyph and a neutral grade.
        """
        return Clef.on_staff(target_staff, self.shape, self.kind, self.pitch, grade=0.0)

    def reclassify(self, kind: ClefKind) -> Clef:
        """
        Return a copy of this clef with another kind, sitting on its reference line.

        Moving to another clef family also takes that family's plain shape,
        dropping any ottava mark.
        """
        shape = self.shape if kind.shape is self.kind.shape else kind.shape
        return replace(self, shape=shape, kind=kind, pitch=kind.pitch)

    def note_step_of(self, pitch_position: int) -> Step | None:
        """
        Report the note step of a note at the given pitch position.

        Returns:
            The step, or None on a percussion staff.
        """
        if self.kind is ClefKind.TREBLE:
            return Step((71 - pitch_position) % 7)
        if self.kind is ClefKind.BASS:
            return Step((73 - pitch_position) % 7)
        if self.kind is ClefKind.PERCUSSION:
            return None
        # C-clef family, wherever the clef sits
        return Step((72 - self.pitch - pitch_position) % 7)

    def octave_of(self, pitch_position: int) -> int:
        """Report the octave of a note at the given pitch position (middle C is in octave 4)."""
        shift = OCTAVE_SHIFTS.get(self.shape, 0)
        if self.kind is ClefKind.TREBLE:
            return (34 - pitch_position) // 7 + shift
        if self.kind is ClefKind.BASS:
            return (22 - pitch_position) // 7 + shift
        if self.kind is ClefKind.PERCUSSION:
            return 0
        return (28 - self.pitch - pitch_position) // 7

    def note_name(self, pitch_position: int) -> str | None:
        """Human-readable note name, e.g. 'B4', or None on a percussion staff."""
        step = self.note_step_of(pitch_position)
        if step is None:
            return None
        return f"{step.name}{self.octave_of(pitch_position)}"


#: Stand-in used whenever no current clef is known. Never mutated.
DEFAULT_CLEF = Clef(shape=Shape.G_CLEF, kind=ClefKind.TREBLE, pitch=2)


def note_step_of(clef: Clef | None, pitch_position: int) -> Step | None:
    """Note step at ``pitch_position`` under ``clef``, or under the default clef if None."""
    if clef is None:
        clef = DEFAULT_CLEF
    return clef.note_step_of(pitch_position)


def octave_of(clef: Clef | None, pitch_position: int) -> int:
    """Octave at ``pitch_position`` under ``clef``, or under the default clef if None."""
    if clef is None:
        clef = DEFAULT_CLEF
    return clef.octave_of(pitch_position)
