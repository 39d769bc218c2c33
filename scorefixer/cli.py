"""scorefixer CLI entry point."""

import logging
import sys

import click

from scorefixer import __version__
from scorefixer.clef import CLEF_SHAPES, KEY_SLOTS, Clef
from scorefixer.errors import PageFormatError
from scorefixer.page_loader import load_page
from scorefixer.pitch_classifier import classify, classify_by_shape
from scorefixer.plausibility import AcceptAllPolicy, CommonTimeSignaturePolicy, PlausibilityPolicy
from scorefixer.score_models import Shape
from scorefixer.time_signature_auditor import TimeSignatureAuditor, build_regions

CLEF_SHAPE_NAMES = sorted(shape.name for shape in CLEF_SHAPES)


def _get_policy(name: str) -> PlausibilityPolicy:
    """Return the PlausibilityPolicy selected on the command line."""
    if name == "any":
        return AcceptAllPolicy()
    return CommonTimeSignaturePolicy()


def _parse_slots(text: str) -> list[float | None]:
    """Parse comma-separated pitch slots; an empty slot stands for an absent accidental."""
    slots: list[float | None] = []
    for token in text.split(","):
        token = token.strip()
        if not token:
            slots.append(None)
            continue
        try:
            slots.append(float(token))
        except ValueError:
            raise click.BadParameter(f"'{token}' is not a number.") from None
    return slots


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="scorefixer")
@click.option("--verbose", "-v", is_flag=True, help="Log every decision (DEBUG level).")
def main(verbose: bool) -> None:
    """scorefixer — clef and time-signature consistency checks for OMR pages."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# ── audit subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("page_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--policy",
    type=click.Choice(["common", "any"], case_sensitive=False),
    default="common",
    show_default=True,
    help=(
        "Which corrected values are allowed. "
        "common: usual time signatures only. any: every positive value."
    ),
)
def audit(page_file: str, policy: str) -> None:
    """
    Check the time signatures of a page against the rhythm of its voices.

    PAGE_FILE is a JSON page description.

    \b
    Examples:
      scorefixer audit page.json
      scorefixer -v audit page.json --policy any
    """
    click.echo(f"scorefixer v{__version__}")
    click.echo(f"  Page   : {page_file}")
    click.echo(f"  Policy : {policy.lower()}")
    click.echo()

    try:
        page = load_page(page_file)
    except PageFormatError as exc:
        click.echo(f"  ERROR: Could not load page — {exc}", err=True)
        sys.exit(1)

    slices = page.vertical_measures()
    regions = build_regions(slices)
    click.echo(f"[1/2] Found {len(slices)} measure(s), {len(regions)} region(s):")
    for region in regions:
        flag = "  (manual)" if region.manual else ""
        click.echo(f"        {slices[region.start].id}..{slices[region.stop].id}{flag}")

    before = {
        id(sig): str(sig)
        for vertical in slices
        for _part, _measure, _staff, sig in vertical.signatures()
    }

    click.echo("[2/2] Auditing time signatures...")
    auditor = TimeSignatureAuditor(policy=_get_policy(policy.lower()))
    modified = auditor.audit(page)

    for vertical in slices:
        for part, measure, staff, sig in vertical.signatures():
            if before[id(sig)] != str(sig):
                click.echo(f"        Measure#{measure.id} {part.id} T{staff.id}: "
                           f"{before[id(sig)]} -> {sig}")
            for diagnostic in sig.diagnostics:
                click.echo(f"        Measure#{measure.id} {part.id} T{staff.id}: "
                           f"WARNING {diagnostic.message}", err=True)

    click.echo()
    click.echo("Done!  Page modified." if modified else "Done!  Page unchanged.")


# ── clef subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.option(
    "--accidental",
    type=click.Choice(["sharp", "flat"], case_sensitive=False),
    required=True,
    help="Kind of accidentals found in the key signature.",
)
@click.option(
    "--pitches",
    required=True,
    metavar="SLOTS",
    help=f"{KEY_SLOTS} comma-separated pitch positions; leave a slot empty when absent.",
)
def clef(accidental: str, pitches: str) -> None:
    """
    Guess the clef kind from the pitch positions of key-signature accidentals.

    \b
    Examples:
      scorefixer clef --accidental sharp --pitches="-4,-1,-5,,,,"
      scorefixer clef --accidental flat --pitches="2,-1,3,0,,,"
    """
    slots = _parse_slots(pitches)
    if len(slots) != KEY_SLOTS:
        raise click.BadParameter(
            f"expected {KEY_SLOTS} slots, got {len(slots)}.", param_hint="--pitches"
        )

    shape = Shape.SHARP if accidental.lower() == "sharp" else Shape.FLAT
    kind, errors = classify(shape, slots)

    for candidate, error in errors.items():
        click.echo(f"  {candidate.name:<10} {error:7.3f}")

    if kind is None:
        click.echo("  WARNING: No accidental measured, clef kind unresolved.", err=True)
        sys.exit(1)

    click.echo(f"Best clef: {kind.name}")


# ── notes subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.option(
    "--shape",
    type=click.Choice(CLEF_SHAPE_NAMES, case_sensitive=False),
    default="G_CLEF",
    show_default=True,
    help="Clef shape governing the staff.",
)
@click.option(
    "--pitch-line",
    type=int,
    default=None,
    metavar="N",
    help="Pitch position of the clef reference line. Defaults to the clef kind's own line.",
)
@click.option(
    "--positions",
    required=True,
    metavar="LIST",
    help="Comma-separated note pitch positions (0 = middle line, positive downwards).",
)
def notes(shape: str, pitch_line: int | None, positions: str) -> None:
    """
    Name the notes found at given pitch positions under a clef.

    \b
    Examples:
      scorefixer notes --positions="0,-1,4"
      scorefixer notes --shape C_CLEF --pitch-line=-2 --positions="0,2"
    """
    clef_shape = Shape[shape.upper()]
    if pitch_line is not None and clef_shape is not Shape.C_CLEF:
        raise click.BadParameter("only a C_CLEF can sit on another line.", param_hint="--pitch-line")

    kind = classify_by_shape(clef_shape, pitch_line if pitch_line is not None else 0)
    current = Clef(
        shape=clef_shape,
        kind=kind,
        pitch=pitch_line if pitch_line is not None else kind.pitch,
    )

    for token in positions.split(","):
        try:
            position = int(token.strip())
        except ValueError:
            raise click.BadParameter(f"'{token}' is not an integer.", param_hint="--positions") from None
        name = current.note_name(position)
        click.echo(f"  {position:>4}  {name if name is not None else '-'}")
