"""Score hierarchy consumed by the resolver: Page -> System -> Part -> Measure -> Voice."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import TYPE_CHECKING

from scorefixer.errors import MalformedMeasureChain, SignatureAccessFailure

if TYPE_CHECKING:
    from scorefixer.clef import Clef

Point = tuple[float, float]


class Shape(Enum):
    """Recognizer shape categories handled by the resolver."""

    G_CLEF = "G_CLEF"
    G_CLEF_SMALL = "G_CLEF_SMALL"
    G_CLEF_8VA = "G_CLEF_8VA"
    G_CLEF_8VB = "G_CLEF_8VB"
    C_CLEF = "C_CLEF"
    F_CLEF = "F_CLEF"
    F_CLEF_SMALL = "F_CLEF_SMALL"
    F_CLEF_8VA = "F_CLEF_8VA"
    F_CLEF_8VB = "F_CLEF_8VB"
    PERCUSSION_CLEF = "PERCUSSION_CLEF"
    SHARP = "SHARP"
    FLAT = "FLAT"


@dataclass(frozen=True)
class Glyph:
    """
    A recognized symbol hypothesis.

    Attributes:
        id:       Recognizer-assigned identifier.
        shape:    Best shape category assigned by the recognizer.
        location: Glyph center as (x, y) in page pixels.
        grade:    Recognizer confidence in [0, 1].
    """

    id: int
    shape: Shape
    location: Point = (0.0, 0.0)
    grade: float = 1.0


@dataclass(eq=False)
class Staff:
    """
    One staff of a part, described by its horizontal lines.

    Pitch positions are measured from the middle line in half-interline
    units and grow downwards: the bottom line of a 5-line staff is +4,
    the top line is -4.
    """

    id: int
    top: float = 0.0
    interline: float = 20.0
    line_count: int = 5
    clef: Clef | None = None

    @property
    def middle(self) -> float:
        """Ordinate of the middle line."""
        return self.top + (self.line_count - 1) * self.interline / 2

    def pitch_position_of(self, point: Point) -> float:
        """Return the (real) pitch position of a point relative to this staff."""
        _, y = point
        return 2 * (y - self.middle) / self.interline

    def attach_clef(self, clef: Clef) -> None:
        """Make the given clef the current clef of this staff."""
        self.clef = clef


@dataclass(frozen=True)
class Diagnostic:
    """A problem noted on an entity, pointing at the glyph it came from."""

    glyph: Glyph | None
    message: str


@dataclass(eq=False)
class TimeSignature:
    """
    An explicit time signature carried by one staff of one measure.

    Numerator and denominator are kept as recognized, so they may be
    malformed (e.g. a zero denominator). ``value`` reports the reduced
    fraction and fails on such entities.
    """

    numerator: int
    denominator: int
    manual: bool = False
    glyph: Glyph | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def value(self) -> Fraction:
        try:
            value = Fraction(self.numerator, self.denominator)
        except (ZeroDivisionError, TypeError, ValueError) as exc:
            raise SignatureAccessFailure(
                f"Invalid time signature {self.numerator}/{self.denominator}: {exc}"
            ) from exc
        if value <= 0:
            raise SignatureAccessFailure(f"Non-positive time signature {value}")
        return value

    def set_value(self, value: Fraction) -> None:
        """Rewrite this signature in place with a new reduced value."""
        if not isinstance(value, Fraction) or value <= 0:
            raise SignatureAccessFailure(f"Cannot assign time signature {value!r}")
        self.numerator = value.numerator
        self.denominator = value.denominator

    def attach_diagnostic(self, glyph: Glyph | None, message: str) -> None:
        self.diagnostics.append(Diagnostic(glyph=glyph, message=message))

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


@dataclass
class Voice:
    """
    One rhythmic line within a measure.

    Attributes:
        id:        Voice number within the measure.
        inferred:  Time signature inferred by rhythm analysis, if conclusive.
        durations: Chord durations of the voice, in whole-note units. Used
                   as evidence when no explicit inference is available.
    """

    id: int
    inferred: Fraction | None = None
    durations: list[Fraction] = field(default_factory=list)

    @property
    def inferred_time_signature(self) -> Fraction | None:
        if self.inferred is not None:
            return self.inferred
        if self.durations:
            return sum(self.durations, Fraction(0))
        return None


@dataclass(eq=False)
class Measure:
    """A measure of one part, with its voices and per-staff time signatures."""

    id: int
    voices: list[Voice] = field(default_factory=list)
    time_signatures: dict[int, TimeSignature] = field(default_factory=dict)

    def time_signature(self, staff: Staff) -> TimeSignature | None:
        return self.time_signatures.get(staff.id)


@dataclass(eq=False)
class Part:
    id: str
    staves: list[Staff] = field(default_factory=list)
    measures: list[Measure] = field(default_factory=list)


@dataclass(eq=False)
class System:
    parts: list[Part] = field(default_factory=list)


@dataclass(frozen=True)
class VerticalMeasure:
    """
    All measures sharing one index across the parts of a system.

    ``entries`` pairs every part of the system with its measure at this
    index, or with None when the part has fewer measures.
    """

    system_index: int
    measure_index: int
    entries: tuple[tuple[Part, Measure | None], ...]

    @property
    def id(self) -> int | None:
        for _, measure in self.entries:
            if measure is not None:
                return measure.id
        return None

    def check_complete(self) -> None:
        """
        Raises:
            MalformedMeasureChain: If a part lacks this measure or parts
                                   disagree on the measure id.
        """
        ids = set()
        for part, measure in self.entries:
            if measure is None:
                raise MalformedMeasureChain(
                    f"Part {part.id} has no measure #{self.measure_index} "
                    f"in system #{self.system_index}"
                )
            ids.add(measure.id)
        if len(ids) > 1:
            raise MalformedMeasureChain(
                f"Parts disagree on measure id in system #{self.system_index}: {sorted(ids)}"
            )

    def measures(self) -> Iterator[tuple[Part, Measure]]:
        for part, measure in self.entries:
            if measure is not None:
                yield part, measure

    def signatures(self) -> Iterator[tuple[Part, Measure, Staff, TimeSignature]]:
        """Yield every explicit time signature carried by a staff of this slice."""
        for part, measure in self.measures():
            for staff in part.staves:
                sig = measure.time_signature(staff)
                if sig is not None:
                    yield part, measure, staff, sig


@dataclass(eq=False)
class Page:
    systems: list[System] = field(default_factory=list)

    def vertical_measures(self) -> list[VerticalMeasure]:
        """Return the page's vertical measures in page order, system after system."""
        slices: list[VerticalMeasure] = []
        for system_index, system in enumerate(self.systems):
            count = max((len(part.measures) for part in system.parts), default=0)
            for measure_index in range(count):
                entries = tuple(
                    (part, part.measures[measure_index] if measure_index < len(part.measures) else None)
                    for part in system.parts
                )
                slices.append(VerticalMeasure(system_index, measure_index, entries))
        return slices

    @property
    def measure_count(self) -> int:
        """Number of vertical measures on the page."""
        return sum(
            max((len(part.measures) for part in system.parts), default=0) for system in self.systems
        )

    def following(self, index: int) -> int | None:
        """Index of the vertical measure after ``index``, or None at the end of the page."""
        count = self.measure_count
        if not 0 <= index < count:
            raise MalformedMeasureChain(f"No vertical measure #{index} on this page")
        return index + 1 if index + 1 < count else None
