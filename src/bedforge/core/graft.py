"""Splicing of additional exonic material onto BED12 records.

Three grafting modes are supported:

- **Upstream append**: extend the record at its low-coordinate end
- **Downstream append**: extend the record at its high-coordinate end
- **General graft**: insert the addition as an extra block anywhere,
  merging it with blocks it overlaps or touches

Overlapping an existing block is refused unless explicitly allowed. An
appended addition that merely touches the outermost block is absorbed
without ``allow_overlap``; a general graft that touches any block merges
with it and therefore needs ``allow_overlap``. With ``coding`` set, the
grafted material becomes part of the thick range.

Example:
    >>> from bedforge.core.graft import graft
    >>> from bedforge.core.records import Interval
    >>> extended = graft(record, Interval("chr1", 50, 80), append_upstream=True)
    >>> extended.thin_start
    50
"""

from __future__ import annotations

import logging

from bedforge.core.intervals import merge_all, overlap_length, sort_intervals
from bedforge.core.records import BedEntry, Coordinates, Interval
from bedforge.errors import GraftError, MissingTraitError

logger = logging.getLogger(__name__)

Span = tuple[int, int]


# =============================================================================
# Mode implementations
# =============================================================================


def _absorb(
    blocks: list[Span],
    start: int,
    end: int,
    allow_overlap: bool,
    label: str,
) -> tuple[list[Span], list[Span]]:
    """Split blocks into (touched_by_addition, untouched), checking overlaps."""
    touched = [span for span in blocks if overlap_length(*span, start, end) is not None]
    if not allow_overlap:
        for span in touched:
            if overlap_length(*span, start, end) > 0:
                raise GraftError(
                    f"Addition {start}-{end} overlaps block {span[0]}-{span[1]} of {label}"
                )
    untouched = [span for span in blocks if span not in touched]
    return touched, untouched


def _append_upstream(
    record: BedEntry,
    start: int,
    end: int,
    allow_overlap: bool,
    coding: bool,
) -> tuple[list[Span], Span]:
    label = record.name if record.has("name") else record.chrom
    thin_start = record.thin_start
    thick_start, thick_end = record.thick_start, record.thick_end

    if start > thin_start:
        raise GraftError(
            f"Addition {start}-{end} does not extend {label} upstream of {thin_start}"
        )
    if coding:
        if thin_start != thick_start:
            raise GraftError(
                f"Cannot extend the coding sequence of {label} upstream: "
                f"the record has an untranslated region at its start"
            )
        thick_start = start
    elif record.is_coding and end > thick_start:
        raise GraftError(f"Addition {start}-{end} intrudes into the coding sequence of {label}")

    touched, untouched = _absorb(record.block_spans(), start, end, allow_overlap, label)
    first_end = max([end] + [span[1] for span in touched])
    return [(start, first_end)] + untouched, (thick_start, thick_end)


def _append_downstream(
    record: BedEntry,
    start: int,
    end: int,
    allow_overlap: bool,
    coding: bool,
) -> tuple[list[Span], Span]:
    label = record.name if record.has("name") else record.chrom
    thin_end = record.thin_end
    thick_start, thick_end = record.thick_start, record.thick_end

    if end < thin_end:
        raise GraftError(
            f"Addition {start}-{end} does not extend {label} downstream of {thin_end}"
        )
    if coding:
        if thin_end != thick_end:
            raise GraftError(
                f"Cannot extend the coding sequence of {label} downstream: "
                f"the record has an untranslated region at its end"
            )
        thick_end = end
    elif record.is_coding and start < thick_end:
        raise GraftError(f"Addition {start}-{end} intrudes into the coding sequence of {label}")

    touched, untouched = _absorb(record.block_spans(), start, end, allow_overlap, label)
    last_start = min([start] + [span[0] for span in touched])
    return untouched + [(last_start, end)], (thick_start, thick_end)


def _insert(
    record: BedEntry,
    start: int,
    end: int,
    allow_overlap: bool,
    coding: bool,
) -> tuple[list[Span], Span]:
    label = record.name if record.has("name") else record.chrom
    pieces = record.to_blocks() + [
        Interval(chrom=record.chrom, start=start, end=end, name=f"{label}_graft")
    ]
    merged = merge_all(sort_intervals(pieces))
    if len(merged) < len(pieces) and not allow_overlap:
        raise GraftError(f"Addition {start}-{end} overlaps existing blocks of {label}")

    thick_start, thick_end = record.thick_start, record.thick_end
    if coding:
        if record.is_coding:
            thick_start, thick_end = min(thick_start, start), max(thick_end, end)
        else:
            thick_start, thick_end = start, end
    return [(piece.start, piece.end) for piece in merged], (thick_start, thick_end)


# =============================================================================
# Public API
# =============================================================================


def graft(
    record: BedEntry,
    addition: Coordinates,
    in_place: bool = False,
    require_same_chrom: bool = True,
    allow_overlap: bool = False,
    coding: bool = False,
    append_upstream: bool = False,
    append_downstream: bool = False,
) -> BedEntry | None:
    """Splice an interval into a BED12 record as exonic material.

    Args:
        record: BED12 record to extend.
        addition: Interval (or any record with coordinates) to graft.
        in_place: Modify ``record`` instead of returning a new record.
        require_same_chrom: Refuse additions located on another chromosome.
        allow_overlap: Permit the addition to overlap existing blocks.
        coding: Treat the addition as coding sequence (extends thick bounds).
        append_upstream: Extend the record at its low-coordinate end.
        append_downstream: Extend the record at its high-coordinate end.

    Returns:
        The spliced copy, or None if ``in_place`` is set.

    Raises:
        MissingTraitError: If the record is not BED12 or the addition has
            undefined coordinates.
        GraftError: If the graft is refused.
    """
    record.require_blocks("Grafting")
    if append_upstream and append_downstream:
        raise GraftError("Upstream and downstream appending are mutually exclusive")

    start, end = addition.start, addition.end
    if start is None or end is None:
        raise MissingTraitError("Cannot graft an addition with undefined coordinates")
    if start >= end:
        raise GraftError(f"Cannot graft an empty addition ({start}-{end})")
    if require_same_chrom:
        chrom = getattr(addition, "chrom", None)
        if chrom != record.chrom:
            raise GraftError(
                f"Addition chromosome ({chrom}) differs from record chromosome ({record.chrom})"
            )

    if append_upstream:
        spans, thick = _append_upstream(record, start, end, allow_overlap, coding)
    elif append_downstream:
        spans, thick = _append_downstream(record, start, end, allow_overlap, coding)
    else:
        spans, thick = _insert(record, start, end, allow_overlap, coding)

    target = record if in_place else record.copy()
    target.set_blocks(spans)
    if not coding and not record.is_coding:
        # keep the non-coding marker on the (possibly moved) thinEnd
        thick = (target.thin_end, target.thin_end)
    target.thick_start, target.thick_end = thick

    logger.debug(
        f"Grafted {start}-{end} onto {target.chrom}:{target.thin_start}-{target.thin_end} "
        f"({target.exon_count} blocks)"
    )
    return None if in_place else target
