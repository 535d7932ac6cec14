"""Extraction of coding and untranslated fractions from BED12 records.

A BED12 transcript is decomposed into the requested sub-feature:

- ``all``: the unmodified feature (or every intron)
- ``cds``: the coding portion, bounded by thickStart/thickEnd
- ``utr``: both untranslated flanks
- ``5utr``/``3utr``: a single flank; which genomic side it lies on
  depends on the strand

Units (exon blocks, or the gaps between them when ``use_introns`` is set)
are scanned once in genomic order. Records with an empty thick range are
non-coding and count as untranslated over their whole span.

Example:
    >>> from bedforge.core.fraction import FractionMode, fraction_line
    >>> fraction_line(line, FractionMode.CDS)
    'chr9\\t101362427\\t101371404\\t...'
"""

from __future__ import annotations

import logging
from enum import Enum

from bedforge.core.records import BedEntry

logger = logging.getLogger(__name__)


# =============================================================================
# Enums
# =============================================================================


class FractionMode(Enum):
    """Fraction of a transcript to extract."""

    ALL = "all"
    CDS = "cds"
    UTR = "utr"
    UTR5 = "5utr"
    UTR3 = "3utr"

    @classmethod
    def parse(cls, value: FractionMode | str) -> FractionMode:
        """Convert a mode name into a FractionMode.

        Raises:
            ValueError: If the name is not a known mode.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise ValueError(
                f"Invalid mode has been provided: {value}. Valid modes are: {valid}"
            ) from None


# =============================================================================
# Extraction
# =============================================================================


def _collect_fragments(
    units: list[tuple[int, int]],
    mode: FractionMode,
    thick_start: int,
    thick_end: int,
    strand: bool,
) -> list[tuple[int, int]]:
    """Select (and clip) the units belonging to the requested fraction."""
    # on the minus strand the 5'-UTR lies downstream of the CDS
    report_up = report_down = False
    if mode is FractionMode.UTR5:
        report_up, report_down = strand, not strand
    elif mode is FractionMode.UTR3:
        report_up, report_down = not strand, strand
    keep_up = mode in (FractionMode.ALL, FractionMode.UTR) or report_up
    keep_down = mode in (FractionMode.ALL, FractionMode.UTR) or report_down

    fragments: list[tuple[int, int]] = []
    for start, end in units:
        if end <= thick_start:
            if keep_up:
                fragments.append((start, end))
            continue
        if start >= thick_end:
            if keep_down:
                fragments.append((start, end))
            elif report_up:
                break
            continue

        # the unit overlaps the coding sequence
        if mode is FractionMode.ALL:
            fragments.append((start, end))
        elif mode is FractionMode.CDS:
            fragments.append((max(start, thick_start), min(end, thick_end)))
        else:
            if keep_up and start < thick_start:
                fragments.append((start, thick_start))
            if keep_down and end > thick_end:
                fragments.append((thick_end, end))

        # everything past this unit lies beyond the upstream flank
        if report_up:
            break

    return fragments


def _split_fragments(record: BedEntry, fragments: list[tuple[int, int]]) -> list[BedEntry]:
    """Turn fragments into BED6 records numbered in transcript order."""
    strand = record.strand
    count = len(fragments)
    return [
        BedEntry(
            format=6,
            chrom=record.chrom,
            thin_start=start,
            thin_end=end,
            name=record.name,
            score=str(i + 1 if strand else count - i),
            strand=strand,
        )
        for i, (start, end) in enumerate(fragments)
    ]


def extract_fraction(
    record: BedEntry,
    mode: FractionMode | str = FractionMode.ALL,
    use_introns: bool = False,
    split_blocks: bool = False,
) -> BedEntry | list[BedEntry] | None:
    """Extract a coding or untranslated fraction from a BED12 record.

    Args:
        record: Well-formed BED12 record; left unmodified.
        mode: Fraction to extract.
        use_introns: Report the introns of the fraction instead of exons.
        split_blocks: Return one BED6 record per fragment instead of a
            single BED12 record. The score column of each BED6 record holds
            its 1-based ordinal in transcript order.

    Returns:
        A BED12 record, a list of BED6 records (``split_blocks``), or None
        if the requested fraction is empty for this record.

    Raises:
        MissingTraitError: If the record is not BED12.
        ParseError: If the record violates coordinate invariants.
        ValueError: If the mode name is unknown.
    """
    mode = FractionMode.parse(mode)
    record.require_blocks("Fraction extraction")
    record.validate()

    units = record.intron_spans() if use_introns else record.block_spans()
    if not units:
        return None

    if not record.is_coding:
        if mode is FractionMode.CDS:
            return None
        # untranslated over the whole span
        mode = FractionMode.ALL

    fragments = _collect_fragments(
        units, mode, record.thick_start, record.thick_end, record.strand
    )
    if not fragments:
        logger.debug(f"No {mode.value} fraction for {record.name}")
        return None

    if split_blocks:
        return _split_fragments(record, fragments)

    if mode is FractionMode.ALL and not use_introns:
        return record.copy()

    result = record.copy()
    result.set_blocks(fragments)
    if mode is FractionMode.CDS and not use_introns:
        result.thick_start, result.thick_end = result.thin_start, result.thin_end
    else:
        # no coding sequence left: collapse the thick range onto thinEnd
        result.thick_start = result.thick_end = result.thin_end
    return result


def fraction_line(
    line: str,
    mode: FractionMode | str = FractionMode.ALL,
    use_introns: bool = False,
    split_blocks: bool = False,
) -> str | None:
    """Extract a fraction from a single BED12 line.

    Args:
        line: Tab-separated BED12 line.
        mode: Fraction to extract.
        use_introns: Report introns instead of exons.
        split_blocks: Report BED6 lines, one per fragment.

    Returns:
        The formatted BED12 line, newline-joined BED6 lines, or None if the
        line is blank or the fraction is empty.

    Raises:
        ParseError: If the line is not a valid BED12 line.
    """
    from bedforge.io.bed import format_bed_entry, parse_bed_line

    record = parse_bed_line(line, format=12)
    if record is None:
        return None

    result = extract_fraction(record, mode, use_introns=use_introns, split_blocks=split_blocks)
    if result is None:
        return None
    if isinstance(result, list):
        return "\n".join(format_bed_entry(entry) for entry in result)
    return format_bed_entry(result)
