"""Record model for BED annotations.

This module defines the value types shared by every bedforge operation:

- ``Interval``: a bare, partially specified genomic span used as the result
  type of the interval algebra
- ``BedEntry``: a BED3 through BED12 record whose ``format`` tag decides
  which fields are populated
- ``UtrBlock``: a derived view of a single untranslated block portion

Field access on ``BedEntry`` is fail-fast: reading a field that is not
populated raises ``MissingTraitError`` instead of returning a default.

Coordinate conventions:
    - All coordinates are 0-based, half-open ``[start, end)``
    - ``exon_starts`` are offsets relative to ``thin_start``

Example:
    >>> from bedforge.core.records import BedEntry
    >>> entry = BedEntry(
    ...     format=12, chrom="chr1", thin_start=100, thin_end=400,
    ...     name="tx1", score="0", strand=True, thick_start=150,
    ...     thick_end=350, rgb="0", exon_count=2,
    ...     exon_sizes=[100, 100], exon_starts=[0, 200],
    ... )
    >>> entry.block_spans()
    [(100, 200), (300, 400)]
    >>> entry.to_cds().block_spans()
    [(150, 200), (300, 350)]
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Protocol, runtime_checkable

import attrs

from bedforge.errors import MissingTraitError, ParseError

# =============================================================================
# Constants
# =============================================================================

# 0 marks a record whose format has not been set
VALID_FORMATS = (0, 3, 4, 5, 6, 8, 9, 12)

# Default score used when decomposing records without a score column
DEFAULT_SCORE = "0"


class UtrSide(Enum):
    """Strand-relative side of an untranslated region."""

    FIVE_PRIME = "five_prime_UTR"
    THREE_PRIME = "three_prime_UTR"


# =============================================================================
# Capabilities
# =============================================================================


@runtime_checkable
class Coordinates(Protocol):
    """Anything located on a reference sequence by a half-open span."""

    @property
    def chrom(self) -> str | None: ...

    @property
    def start(self) -> int | None: ...

    @property
    def end(self) -> int | None: ...

    def length(self) -> int | None: ...


@runtime_checkable
class Named(Protocol):
    """Anything carrying a feature name."""

    @property
    def name(self) -> str | None: ...


@runtime_checkable
class Stranded(Protocol):
    """Anything carrying a strand (True for '+', False for '-')."""

    @property
    def strand(self) -> bool | None: ...


# =============================================================================
# Interval
# =============================================================================


@attrs.define(slots=True)
class Interval:
    """A genomic interval with independently optional fields.

    Attributes:
        chrom: Chromosome/contig identifier.
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        name: Interval name.
    """

    chrom: str | None = None
    start: int | None = None
    end: int | None = None
    name: str | None = None

    def __attrs_post_init__(self) -> None:
        for label, value in (("start", self.start), ("end", self.end)):
            if value is not None and value < 0:
                raise ParseError(f"Interval {label} cannot be negative, got {value}")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ParseError(
                f"Interval start ({self.start}) cannot be larger than end ({self.end})"
            )

    def length(self) -> int | None:
        """Interval length, or None if either bound is undefined."""
        if self.start is None or self.end is None:
            return None
        return self.end - self.start


# =============================================================================
# UTR view
# =============================================================================


@attrs.frozen(slots=True)
class UtrBlock:
    """A single untranslated portion of an exon block.

    Attributes:
        chrom: Chromosome/contig identifier.
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
        name: Name of the parent record.
        strand: Strand of the parent record.
        side: Strand-relative UTR side.
        adjacent: Whether the portion touches the CDS boundary.
    """

    chrom: str
    start: int
    end: int
    name: str
    strand: bool
    side: UtrSide
    adjacent: bool = False

    def length(self) -> int:
        """Block portion length."""
        return self.end - self.start


# =============================================================================
# BED record
# =============================================================================


def _trait(attr: str, label: str) -> property:
    """Build a fail-fast accessor/mutator pair for a BedEntry field."""

    def getter(self: BedEntry):
        value = getattr(self, attr)
        if value is None:
            raise MissingTraitError(f"Undefined {label} field for BED{self.format} entry")
        return value

    def setter(self: BedEntry, value) -> None:
        setattr(self, attr, value)

    return property(getter, setter, doc=f"The {label} field; raises MissingTraitError if unset.")


@attrs.define(slots=True)
class BedEntry:
    """A BED3-BED12 annotation record.

    Fields are populated progressively according to ``format``:
    3 (chrom, thin_start, thin_end), 4 (+name), 5 (+score), 6 (+strand),
    8 (+thick_start, thick_end), 9 (+rgb), 12 (+exon_count, exon_sizes,
    exon_starts). Reading an unpopulated field raises ``MissingTraitError``.

    Attributes:
        format: Number of BED columns the record was built from (0 = unset).
        chrom: Chromosome/contig identifier.
        thin_start: Feature start (0-based, inclusive).
        thin_end: Feature end (0-based, exclusive).
        name: Feature name.
        score: Score column, kept as an opaque string.
        strand: True for '+', False for '-'.
        thick_start: Coding range start.
        thick_end: Coding range end.
        rgb: Item colour, kept as an opaque string.
        exon_count: Number of blocks.
        exon_sizes: Block sizes.
        exon_starts: Block starts relative to thin_start.
    """

    format: int = attrs.field(default=0, validator=attrs.validators.in_(VALID_FORMATS))
    _chrom: str | None = None
    _thin_start: int | None = None
    _thin_end: int | None = None
    _name: str | None = None
    _score: str | None = None
    _strand: bool | None = None
    _thick_start: int | None = None
    _thick_end: int | None = None
    _rgb: str | None = None
    _exon_count: int | None = None
    _exon_sizes: list[int] | None = None
    _exon_starts: list[int] | None = None

    chrom = _trait("_chrom", "chrom")
    thin_start = _trait("_thin_start", "thinStart")
    thin_end = _trait("_thin_end", "thinEnd")
    name = _trait("_name", "name")
    score = _trait("_score", "score")
    strand = _trait("_strand", "strand")
    thick_start = _trait("_thick_start", "thickStart")
    thick_end = _trait("_thick_end", "thickEnd")
    rgb = _trait("_rgb", "rgb")
    exon_count = _trait("_exon_count", "exonCount")
    exon_sizes = _trait("_exon_sizes", "exonSizes")
    exon_starts = _trait("_exon_starts", "exonStarts")

    # -------------------------------------------------------------------------
    # Coordinates capability
    # -------------------------------------------------------------------------

    @property
    def start(self) -> int:
        """Alias of thin_start."""
        return self.thin_start

    @property
    def end(self) -> int:
        """Alias of thin_end."""
        return self.thin_end

    def length(self) -> int:
        """Genomic span length (thin_end - thin_start)."""
        return self.thin_end - self.thin_start

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def has(self, field: str) -> bool:
        """Check whether a field is populated without raising."""
        return getattr(self, f"_{field}") is not None

    @property
    def is_coding(self) -> bool:
        """True if the record has a non-empty thick (coding) range."""
        return self.thick_start != self.thick_end

    def copy(self) -> BedEntry:
        """Return an independent deep copy of the record."""
        return copy.deepcopy(self)

    def require_blocks(self, operation: str) -> None:
        """Raise MissingTraitError unless the record is BED12."""
        if self.format != 12:
            raise MissingTraitError(
                f"{operation} requires a BED12 entry, got BED{self.format}"
            )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Check coordinate invariants for the record's format.

        Raises:
            ParseError: If any invariant is violated.
        """
        if self.format not in VALID_FORMATS:
            raise ParseError(f"Unsupported BED format: BED{self.format}")
        if self.format == 0:
            return

        thin_start, thin_end = self.thin_start, self.thin_end
        if thin_start < 0 or thin_end < 0:
            raise ParseError("Coordinates cannot be negative")
        if thin_start > thin_end:
            raise ParseError(
                f"thinStart value ({thin_start}) cannot be larger than thinEnd ({thin_end})"
            )

        if self.format >= 8:
            thick_start, thick_end = self.thick_start, self.thick_end
            if thick_start < thin_start:
                raise ParseError(
                    f"thickStart value ({thick_start}) cannot be smaller than "
                    f"thinStart ({thin_start})"
                )
            if thick_end > thin_end:
                raise ParseError(
                    f"thickEnd value ({thick_end}) cannot be larger than thinEnd ({thin_end})"
                )
            if thick_start > thick_end:
                raise ParseError(
                    f"thickStart value ({thick_start}) cannot be larger than "
                    f"thickEnd ({thick_end})"
                )

        if self.format == 12:
            sizes, starts = self.exon_sizes, self.exon_starts
            if not len(sizes) == len(starts) == self.exon_count:
                raise ParseError(
                    f"Block count mismatch: exonCount={self.exon_count}, "
                    f"{len(sizes)} sizes, {len(starts)} starts"
                )
            if self.exon_count == 0:
                raise ParseError("BED12 entry must contain at least one block")
            if any(value < 0 for value in sizes) or any(value < 0 for value in starts):
                raise ParseError("Block sizes and starts cannot be negative")
            prev_end = None
            for start, size in zip(starts, sizes):
                if prev_end is not None and start < prev_end:
                    raise ParseError(
                        f"Blocks must be sorted and non-overlapping; block at offset "
                        f"{start} starts before the previous block ends ({prev_end})"
                    )
                prev_end = start + size
            if thin_start + prev_end != thin_end:
                raise ParseError(
                    f"Last block ends at {thin_start + prev_end}, expected thinEnd ({thin_end})"
                )

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def block_spans(self) -> list[tuple[int, int]]:
        """Absolute (start, end) spans of the record's blocks.

        Records below BED12 are treated as a single block.
        """
        thin_start = self.thin_start
        if self.format != 12:
            return [(thin_start, self.thin_end)]
        return [
            (thin_start + offset, thin_start + offset + size)
            for offset, size in zip(self.exon_starts, self.exon_sizes)
        ]

    def intron_spans(self) -> list[tuple[int, int]]:
        """Absolute (start, end) spans of the gaps between consecutive blocks."""
        blocks = self.block_spans()
        return [(blocks[i][1], blocks[i + 1][0]) for i in range(len(blocks) - 1)]

    def block_length(self) -> int:
        """Total length of the blocks (spliced length for BED12)."""
        if self.format != 12:
            return self.thin_end - self.thin_start
        return sum(self.exon_sizes)

    def to_interval(self) -> Interval:
        """Project the record onto its bare [thin_start, thin_end) span."""
        return Interval(
            chrom=self.chrom,
            start=self.thin_start,
            end=self.thin_end,
            name=self._name,
        )

    def to_blocks(self) -> list[BedEntry]:
        """Split a BED12 record into one BED6 record per block.

        Returns:
            BED6 records carrying chrom, name, strand and score (``"0"`` if
            the record has no score).

        Raises:
            MissingTraitError: If the record is not BED12.
        """
        self.require_blocks("Block decomposition")
        score = self._score if self._score is not None else DEFAULT_SCORE
        return [
            BedEntry(
                format=6,
                chrom=self.chrom,
                thin_start=start,
                thin_end=end,
                name=self.name,
                score=score,
                strand=self.strand,
            )
            for start, end in self.block_spans()
        ]

    def utr_blocks(self) -> list[UtrBlock]:
        """Untranslated portions of every block, tagged with their UTR side.

        A block straddling a CDS boundary contributes only its protruding
        portion; such portions are flagged as adjacent to the CDS.
        """
        self.require_blocks("UTR decomposition")
        thick_start, thick_end = self.thick_start, self.thick_end
        strand = self.strand
        upstream_side = UtrSide.FIVE_PRIME if strand else UtrSide.THREE_PRIME
        downstream_side = UtrSide.THREE_PRIME if strand else UtrSide.FIVE_PRIME

        utrs = []
        for start, end in self.block_spans():
            if start < thick_start:
                utr_end = min(end, thick_start)
                utrs.append(
                    UtrBlock(
                        chrom=self.chrom,
                        start=start,
                        end=utr_end,
                        name=self.name,
                        strand=strand,
                        side=upstream_side,
                        adjacent=utr_end == thick_start,
                    )
                )
            if end > thick_end:
                utr_start = max(start, thick_end)
                utrs.append(
                    UtrBlock(
                        chrom=self.chrom,
                        start=utr_start,
                        end=end,
                        name=self.name,
                        strand=strand,
                        side=downstream_side,
                        adjacent=utr_start == thick_end,
                    )
                )
        return utrs

    # -------------------------------------------------------------------------
    # Clipping
    # -------------------------------------------------------------------------

    def set_blocks(self, spans: list[tuple[int, int]]) -> None:
        """Replace the block structure with absolute spans (sorted, non-empty).

        thin_start/thin_end are re-anchored on the first and last span.
        """
        thin_start = spans[0][0]
        self._thin_start = thin_start
        self._thin_end = spans[-1][1]
        self._exon_count = len(spans)
        self._exon_sizes = [end - start for start, end in spans]
        self._exon_starts = [start - thin_start for start, _ in spans]

    def clip_by(
        self,
        start: int | None = None,
        end: int | None = None,
        in_place: bool = False,
    ) -> BedEntry | None:
        """Intersect the record with new optional bounds.

        For BED12 records blocks outside the bounds are dropped and boundary
        blocks are trimmed; the thin range is re-anchored on the remaining
        blocks. The thick range becomes its intersection with the new thin
        range, collapsing to a point at the new thin_end if they are disjoint.

        Args:
            start: New lower bound (unchanged if None).
            end: New upper bound (unchanged if None).
            in_place: Modify this record instead of returning a copy.

        Returns:
            The clipped copy, None if nothing is left (copy mode), or None
            after a successful in-place update.

        Raises:
            ValueError: If nothing is left and in_place is set.
        """
        new_start = self.thin_start if start is None else max(self.thin_start, start)
        new_end = self.thin_end if end is None else min(self.thin_end, end)

        if self.format == 12:
            spans = [(max(s, new_start), min(e, new_end)) for s, e in self.block_spans()]
            spans = [(s, e) for s, e in spans if s < e]
        else:
            spans = [(new_start, new_end)] if new_start < new_end else []

        if not spans:
            if in_place:
                raise ValueError(
                    f"Clipping {self.chrom}:{self.thin_start}-{self.thin_end} "
                    f"by [{start}, {end}) leaves no sequence"
                )
            return None

        target = self if in_place else self.copy()
        if target.format == 12:
            target.set_blocks(spans)
        else:
            target._thin_start, target._thin_end = spans[0]

        if target._thick_start is not None and target._thick_end is not None:
            thick_start = max(target._thick_start, target._thin_start)
            thick_end = min(target._thick_end, target._thin_end)
            if thick_start > thick_end:
                thick_start = thick_end = target._thin_end
            target._thick_start, target._thick_end = thick_start, thick_end

        return None if in_place else target

    def to_cds(self, in_place: bool = False) -> BedEntry | None:
        """Clip the record to its thick (coding) range.

        Raises:
            MissingTraitError: If the record has no thick range (format < 8).
        """
        if self.format < 8:
            raise MissingTraitError(
                f"CDS clipping requires thick coordinates, got BED{self.format}"
            )
        return self.clip_by(self.thick_start, self.thick_end, in_place=in_place)
