"""Genomic interval algebra.

This module provides the interval operations the rest of bedforge builds on:

- Overlap length of two numeric spans
- Pairwise and sequential merging
- Bounding span of a collection
- Sweep-line discretization with provenance tracking

Touching intervals (one ends exactly where the other starts) have an
overlap length of zero and are considered overlapping, so merge operations
join them.

Example:
    >>> from bedforge.core.intervals import discretize
    >>> from bedforge.core.records import Interval
    >>> parts, origin = discretize([
    ...     Interval("chr1", 100, 200, "one"),
    ...     Interval("chr1", 150, 220, "two"),
    ... ])
    >>> [(p.start, p.end) for p in parts]
    [(100, 150), (150, 200), (200, 220)]
    >>> origin["1"]
    ['one', 'two']
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from bedforge.core.records import Coordinates, Interval
from bedforge.errors import MissingTraitError

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def _bounds(item: Coordinates, index: int | None = None) -> tuple[int, int]:
    """Return (start, end) of an item, failing if either is undefined."""
    start, end = item.start, item.end
    if start is None or end is None:
        where = "" if index is None else f" (interval {index})"
        raise MissingTraitError(
            f"Cannot process intervals with undefined coordinates{where}"
        )
    return start, end


def _chrom(item: Coordinates) -> str | None:
    return getattr(item, "chrom", None)


def _name(item: Coordinates) -> str | None:
    return getattr(item, "name", None)


def sort_intervals(intervals: Iterable[Coordinates]) -> list[Coordinates]:
    """Sort intervals by (start, end).

    Args:
        intervals: Items with defined coordinates.

    Returns:
        New list in ascending (start, end) order.
    """
    return sorted(intervals, key=_bounds)


# =============================================================================
# Overlap Operations
# =============================================================================


def overlap_length(start1: int, end1: int, start2: int, end2: int) -> int | None:
    """Calculate the intersection size of two half-open spans.

    Args:
        start1: Start of the first span.
        end1: End of the first span.
        start2: Start of the second span.
        end2: End of the second span.

    Returns:
        Intersection size, 0 for touching spans, None if they are disjoint.

    Example:
        >>> overlap_length(10, 20, 15, 23)
        5
        >>> overlap_length(10, 20, 20, 30)
        0
        >>> overlap_length(10, 20, 21, 30) is None
        True
    """
    size = min(end1, end2) - max(start1, start2)
    if size < 0:
        return None
    return size


# =============================================================================
# Merge Operations
# =============================================================================


def merge_pair(first: Coordinates, second: Coordinates) -> Interval | None:
    """Merge two overlapping or touching intervals.

    Args:
        first: First interval.
        second: Second interval.

    Returns:
        Interval spanning both inputs (chrom and name left unset),
        or None if they do not overlap.

    Raises:
        MissingTraitError: If either input has undefined coordinates.
    """
    s1, e1 = _bounds(first)
    s2, e2 = _bounds(second)
    if overlap_length(s1, e1, s2, e2) is None:
        return None
    return Interval(start=min(s1, s2), end=max(e1, e2))


def merge_all(intervals: Sequence[Coordinates]) -> list[Interval]:
    """Merge overlapping intervals in a sorted collection.

    Every input interval is represented in the output, either within a
    merged interval or as a standalone one. Intervals on different
    chromosomes are never merged.

    Args:
        intervals: Intervals grouped by chromosome, each chromosome run
            sorted by (start, end).

    Returns:
        Merged intervals, named None and carrying the chrom of their first
        member.

    Raises:
        ValueError: If the input is not sorted, or a chromosome reappears
            after another one.
        MissingTraitError: If an interval has undefined coordinates.
    """
    merged: list[Interval] = []
    previous: tuple[int, int] | None = None
    current: str | None = None
    finished: set[str] = set()

    for i, item in enumerate(intervals):
        start, end = _bounds(item, i)
        chrom = _chrom(item)
        if chrom is not None and chrom != current:
            if chrom in finished:
                raise ValueError(
                    f"Intervals must be grouped by chromosome; interval {i} "
                    f"returns to {chrom}"
                )
            if current is not None:
                finished.add(current)
            current = chrom
            previous = None

        if previous is not None and (start, end) < previous:
            raise ValueError(
                f"Intervals must be sorted by (start, end); interval {i} "
                f"({start}-{end}) follows {previous[0]}-{previous[1]}"
            )
        previous = (start, end)

        if merged:
            last = merged[-1]
            same_chrom = chrom is None or last.chrom is None or chrom == last.chrom
            if same_chrom and overlap_length(last.start, last.end, start, end) is not None:
                last.end = max(last.end, end)
                continue

        merged.append(Interval(chrom=chrom, start=start, end=end))

    return merged


def bounding_span(intervals: Iterable[Coordinates]) -> Interval:
    """Create an interval spanning every interval in the collection.

    Args:
        intervals: Intervals sharing a defined chromosome.

    Returns:
        Interval [min_start, max_end) named "chrom:start-end".

    Raises:
        ValueError: If the collection is empty or spans several chromosomes.
        MissingTraitError: If chromosomes or coordinates are undefined.
    """
    ordered = sort_intervals(intervals)
    if not ordered:
        raise ValueError("Cannot compute the span of an empty interval collection")

    chroms = {_chrom(item) for item in ordered}
    if None in chroms:
        raise MissingTraitError("Intervals for span inference must have a defined chrom")
    if len(chroms) > 1:
        raise ValueError(f"Intervals span several chromosomes: {sorted(chroms)}")

    chrom = chroms.pop()
    start = ordered[0].start
    end = max(item.end for item in ordered)
    return Interval(chrom=chrom, start=start, end=end, name=f"{chrom}:{start}-{end}")


# =============================================================================
# Discretization
# =============================================================================


def discretize(
    intervals: Iterable[Coordinates],
) -> tuple[list[Interval], dict[str, list[str]]]:
    """Split overlapping intervals into discrete, non-overlapping ones.

    Intervals are processed in overlap-connected clusters. Within a cluster
    every distinct start and end coordinate is a breakpoint; each pair of
    consecutive breakpoints yields one elementary interval, named by a
    global ordinal and mapped to the names of all cluster members covering it.

    Args:
        intervals: Named intervals with defined coordinates.

    Returns:
        Tuple of (elementary_intervals, ordinal_name -> contributor names).

    Raises:
        MissingTraitError: If an interval lacks coordinates or a name.
    """
    items = list(intervals)
    for i, item in enumerate(items):
        _bounds(item, i)
        if _name(item) is None:
            raise MissingTraitError(f"Cannot discretize unnamed intervals (interval {i})")

    # intervals on different chromosomes never share a cluster
    chrom_rank: dict[str | None, int] = {}
    for item in items:
        chrom_rank.setdefault(_chrom(item), len(chrom_rank))
    ordered = sorted(items, key=lambda item: (chrom_rank[_chrom(item)], *_bounds(item)))
    pieces: list[Interval] = []
    provenance: dict[str, list[str]] = {}

    i = 0
    while i < len(ordered):
        cluster = [ordered[i]]
        cluster_end = ordered[i].end
        j = i + 1
        while (
            j < len(ordered)
            and _chrom(ordered[j]) == _chrom(ordered[i])
            and ordered[j].start <= cluster_end
        ):
            cluster.append(ordered[j])
            cluster_end = max(cluster_end, ordered[j].end)
            j += 1

        chrom = _chrom(cluster[0])
        breakpoints = sorted({item.start for item in cluster} | {item.end for item in cluster})
        for left, right in zip(breakpoints, breakpoints[1:]):
            contributors: list[str] = []
            for item in cluster:
                if item.start <= left and item.end >= right and _name(item) not in contributors:
                    contributors.append(_name(item))
            ordinal = str(len(pieces))
            pieces.append(Interval(chrom=chrom, start=left, end=right, name=ordinal))
            provenance[ordinal] = contributors

        logger.debug(
            f"Discretized cluster {chrom}:{cluster[0].start}-{cluster_end} "
            f"({len(cluster)} intervals, {len(breakpoints) - 1} pieces)"
        )
        i = j

    return pieces, provenance
