"""PlausibilityPolicy: Strategy pattern deciding which time signatures may replace others."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from fractions import Fraction

# ── Allow-list ───────────────────────────────────────────────────────────────

#: Commonly used (numerator, denominator) combinations.
#: Values are compared once reduced, so 4/4 and 2/2 share Fraction(1).
COMMON_TIME_SIGNATURES: tuple[tuple[int, int], ...] = (
    (2, 2), (3, 2), (4, 2),
    (2, 4), (3, 4), (4, 4), (5, 4), (6, 4), (7, 4),
    (3, 8), (5, 8), (6, 8), (7, 8), (9, 8), (12, 8),
    (3, 16), (6, 16), (9, 16), (12, 16),
)


class PlausibilityPolicy(ABC):
    """
    Abstract Strategy for rejecting unlikely time-signature corrections.

    The auditor consults the policy before rewriting any signature; a
    rejected value leaves the whole region untouched.
    """

    @abstractmethod
    def is_acceptable(self, value: Fraction) -> bool:
        """
        Args:
            value: Candidate time signature, as a reduced fraction.

        Returns:
            True if signatures may be rewritten to ``value``.
        """


class CommonTimeSignaturePolicy(PlausibilityPolicy):
    """Accept only values found in an allow-list of common time signatures."""

    def __init__(self, allowed: Iterable[tuple[int, int]] | None = None) -> None:
        """
        Args:
            allowed: (numerator, denominator) pairs to accept.
                     Defaults to COMMON_TIME_SIGNATURES.
        """
        pairs = COMMON_TIME_SIGNATURES if allowed is None else tuple(allowed)
        self.allowed: frozenset[Fraction] = frozenset(Fraction(num, den) for num, den in pairs)

    def is_acceptable(self, value: Fraction) -> bool:
        return value in self.allowed


class AcceptAllPolicy(PlausibilityPolicy):
    """Accept any positive value."""

    def is_acceptable(self, value: Fraction) -> bool:
        return value > 0
