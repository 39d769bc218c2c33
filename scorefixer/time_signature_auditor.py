"""TimeSignatureAuditor: corrects explicit time signatures from the rhythm of the voices."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from fractions import Fraction

from scorefixer.errors import MalformedMeasureChain
from scorefixer.plausibility import CommonTimeSignaturePolicy, PlausibilityPolicy
from scorefixer.score_models import Page, VerticalMeasure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Region:
    """
    A run of vertical measures governed by one explicit time signature.

    Attributes:
        start:  Index of the vertical measure announcing the signature.
        stop:   Index of the last vertical measure governed by it.
        manual: True if any signature of the opening measure was entered by hand.
    """

    start: int
    stop: int
    manual: bool


def scan_signatures(vertical: VerticalMeasure) -> tuple[bool, bool]:
    """
    Report whether a vertical measure carries explicit time signatures.

    Returns:
        (found, manual): ``found`` if some staff has a signature,
        ``manual`` if at least one of them is manual.
    """
    found = False
    manual = False
    for part, measure, staff, sig in vertical.signatures():
        logger.debug("Measure#%s %s T%s %s", measure.id, part.id, staff.id, sig)
        found = True
        if sig.manual:
            manual = True
    return found, manual


def build_regions(slices: Sequence[VerticalMeasure]) -> list[Region]:
    """
    Split a page's vertical measures, given in page order, into regions in one pass.

    A region opens at each vertical measure carrying an explicit signature
    and lasts until the measure before the next one, or the page's last
    measure. Measures before the first signature belong to no region.
    """
    regions: list[Region] = []
    start: int | None = None
    start_manual = False
    previous: int | None = None

    for index, vertical in enumerate(slices):
        found, manual = scan_signatures(vertical)
        if found:
            if start is not None:
                regions.append(Region(start, previous, start_manual))
            start = index
            start_manual = manual

        previous = index

    if start is not None:
        regions.append(Region(start, previous, start_manual))

    return regions


def count_signatures(slices: Sequence[VerticalMeasure]) -> Counter[Fraction]:
    """
    Build the histogram of voice-inferred time signatures over some measures.

    Voices with no inference are skipped. Counting order follows the
    measures, then parts, then voices.

    Raises:
        MalformedMeasureChain: If a slice lacks a part measure.
    """
    counts: Counter[Fraction] = Counter()
    for vertical in slices:
        vertical.check_complete()
        logger.debug("Checking measure#%s", vertical.id)

        for _part, measure in vertical.measures():
            for voice in measure.voices:
                value = voice.inferred_time_signature
                logger.debug("Voice#%s: %s", voice.id, value)
                if value is not None:
                    counts[value] += 1
    return counts


def select_best_signature(counts: Counter[Fraction]) -> Fraction | None:
    """
    Pick the most frequent signature.

    Ties go to the value counted first, so the choice only depends on the
    order of the measures and voices.
    """
    if not counts:
        return None
    # max() keeps the first of equal maxima, and Counter keeps insertion order
    return max(counts, key=counts.__getitem__)


class TimeSignatureAuditor:
    """
    Checks every explicit time signature of a page against voice evidence.

    Algorithm overview
    ------------------
    1. **Regions** – The vertical measures of the page (all parts at once,
       system after system) are split into regions, each opened by a
       measure that carries explicit signatures.

    2. **Histogram** – In every region not opened by a manual signature,
       the inferred time signature of each voice is counted.

    3. **Vote** – The most frequent value is retained, provided the
       plausibility policy accepts it.

    4. **Correction** – Every signature of the opening measure that
       differs from the retained value is rewritten in place.

    A failure on one signature is logged and attached to it as a
    diagnostic; a malformed region is skipped. Neither stops the audit.
    """

    def __init__(self, policy: PlausibilityPolicy | None = None) -> None:
        """
        Args:
            policy: Decides which values are plausible enough to be written.
                    Defaults to CommonTimeSignaturePolicy.
        """
        self.policy = policy if policy is not None else CommonTimeSignaturePolicy()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _check_region(self, slices: Sequence[VerticalMeasure], region: Region) -> bool:
        """Correct the opening signatures of a region. Returns True if any was rewritten."""
        logger.debug(
            "Checking time signatures on measure range %s..%s",
            slices[region.start].id,
            slices[region.stop].id,
        )

        counts = count_signatures(slices[region.start:region.stop + 1])
        best = select_best_signature(counts)

        if best is None:
            logger.debug("No best signature")
            return False

        if not self.policy.is_acceptable(best):
            logger.debug("Time signature too uncommon: %s", best)
            return False

        logger.debug("Best signature: %s", best)

        modified = False
        for part, measure, staff, sig in slices[region.start].signatures():
            try:
                current = sig.value
                if current != best:
                    logger.info(
                        "Measure#%s %s T%s %s->%s", measure.id, part.id, staff.id, str(sig), best
                    )
                    sig.set_value(best)
                    modified = True
            except Exception as exc:
                logger.warning(
                    "Could not check time signature of measure#%s %s T%s: %s",
                    measure.id,
                    part.id,
                    staff.id,
                    exc,
                )
                sig.attach_diagnostic(sig.glyph, f"Could not check time signature {exc}")

        return modified

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def audit(self, page: Page) -> bool:
        """
        Audit all time signatures of a page.

        Args:
            page: The page whose signatures are checked and corrected in place.

        Returns:
            True if at least one signature was modified.
        """
        slices = page.vertical_measures()
        modified = False

        for region in build_regions(slices):
            if region.manual:
                logger.debug(
                    "Manual time signature in measure#%s, range left untouched",
                    slices[region.start].id,
                )
                continue

            try:
                if self._check_region(slices, region):
                    modified = True
            except MalformedMeasureChain as exc:
                logger.warning(
                    "Abandoning measure range %s..%s: %s",
                    slices[region.start].id,
                    slices[region.stop].id,
                    exc,
                )

        return modified
