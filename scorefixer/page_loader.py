"""Page loader: validates a JSON page description and builds a Page from it."""

from __future__ import annotations

import json
from fractions import Fraction
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from scorefixer.errors import PageFormatError
from scorefixer.score_models import (
    Glyph,
    Measure,
    Page,
    Part,
    Shape,
    Staff,
    System,
    TimeSignature,
    Voice,
)


def _parse_fraction(text: str) -> Fraction:
    try:
        return Fraction(text)
    except (ValueError, ZeroDivisionError) as exc:
        raise ValueError(f"invalid fraction {text!r}") from exc


# ── Schema ───────────────────────────────────────────────────────────────────
# Strict models: no coercion of "false" to False or 3.9 to 3.


class _Schema(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid")


class GlyphSchema(_Schema):
    id: int
    shape: str = "G_CLEF"
    location: list[float] = Field(default_factory=lambda: [0.0, 0.0], min_length=2, max_length=2)
    grade: float = Field(default=1.0, ge=0.0, le=1.0)

    @field_validator("shape")
    @classmethod
    def _known_shape(cls, value: str) -> str:
        if value not in Shape.__members__:
            raise ValueError(f"unknown glyph shape {value!r}")
        return value


class TimeSignatureSchema(_Schema):
    numerator: int
    denominator: int
    manual: bool = False
    glyph: GlyphSchema | None = None


class VoiceSchema(_Schema):
    id: int
    inferred: str | None = None
    durations: list[str] = Field(default_factory=list)

    @field_validator("inferred")
    @classmethod
    def _inferred_fraction(cls, value: str | None) -> str | None:
        if value is not None:
            _parse_fraction(value)
        return value

    @field_validator("durations")
    @classmethod
    def _duration_fractions(cls, values: list[str]) -> list[str]:
        for value in values:
            _parse_fraction(value)
        return values


class MeasureSchema(_Schema):
    id: int
    voices: list[VoiceSchema] = Field(default_factory=list)
    time_signatures: dict[str, TimeSignatureSchema] = Field(default_factory=dict)

    @field_validator("time_signatures")
    @classmethod
    def _integer_staff_ids(cls, values: dict[str, TimeSignatureSchema]) -> dict[str, TimeSignatureSchema]:
        for key in values:
            if not key.lstrip("-").isdigit():
                raise ValueError(f"staff id {key!r} is not an integer")
        return values


class StaffSchema(_Schema):
    id: int
    top: float = 0.0
    interline: float = Field(default=20.0, gt=0.0)
    line_count: int = Field(default=5, ge=1)


class PartSchema(_Schema):
    id: str
    staves: list[StaffSchema] = Field(default_factory=list)
    measures: list[MeasureSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def _signatures_on_known_staves(self) -> PartSchema:
        staff_ids = {staff.id for staff in self.staves}
        for measure in self.measures:
            for key in measure.time_signatures:
                if int(key) not in staff_ids:
                    raise ValueError(
                        f"measure {measure.id} of part {self.id} has a time signature "
                        f"on unknown staff {key}"
                    )
        return self


class SystemSchema(_Schema):
    parts: list[PartSchema] = Field(default_factory=list)


class PageSchema(_Schema):
    systems: list[SystemSchema]


# ── Schema -> score hierarchy ────────────────────────────────────────────────


def _build_glyph(schema: GlyphSchema) -> Glyph:
    x, y = schema.location
    return Glyph(id=schema.id, shape=Shape[schema.shape], location=(x, y), grade=schema.grade)


def _build_measure(schema: MeasureSchema) -> Measure:
    return Measure(
        id=schema.id,
        voices=[
            Voice(
                id=v.id,
                inferred=_parse_fraction(v.inferred) if v.inferred is not None else None,
                durations=[_parse_fraction(d) for d in v.durations],
            )
            for v in schema.voices
        ],
        time_signatures={
            int(key): TimeSignature(
                numerator=sig.numerator,
                denominator=sig.denominator,
                manual=sig.manual,
                glyph=_build_glyph(sig.glyph) if sig.glyph is not None else None,
            )
            for key, sig in schema.time_signatures.items()
        },
    )


def _build_part(schema: PartSchema) -> Part:
    return Part(
        id=schema.id,
        staves=[
            Staff(id=s.id, top=s.top, interline=s.interline, line_count=s.line_count)
            for s in schema.staves
        ],
        measures=[_build_measure(m) for m in schema.measures],
    )


def page_from_dict(data: Any) -> Page:
    """
    Build a Page from its dictionary description.

    Raises:
        PageFormatError: If a required key is missing or a value is malformed.
    """
    try:
        schema = PageSchema.model_validate(data)
    except ValidationError as exc:
        raise PageFormatError(f"Malformed page description: {exc}") from exc
    return Page(systems=[System(parts=[_build_part(p) for p in s.parts]) for s in schema.systems])


def load_page(path: str | Path) -> Page:
    """
    Load a Page from a JSON file.

    Raises:
        OSError:         If the file cannot be read.
        PageFormatError: If the content is not a valid page description.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PageFormatError(f"Invalid JSON in '{path}': {exc}") from exc
    return page_from_dict(data)
