"""scorefixer: clef classification and time-signature consistency for OMR pages."""

__version__ = "0.1.0"

from scorefixer.clef import DEFAULT_CLEF, Clef, ClefKind, Step, note_step_of, octave_of
from scorefixer.pitch_classifier import classify, classify_by_shape
from scorefixer.plausibility import AcceptAllPolicy, CommonTimeSignaturePolicy, PlausibilityPolicy
from scorefixer.time_signature_auditor import TimeSignatureAuditor

__all__ = [
    "__version__",
    "DEFAULT_CLEF",
    "Clef",
    "ClefKind",
    "Step",
    "note_step_of",
    "octave_of",
    "classify",
    "classify_by_shape",
    "PlausibilityPolicy",
    "CommonTimeSignaturePolicy",
    "AcceptAllPolicy",
    "TimeSignatureAuditor",
]
