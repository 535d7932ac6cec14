"""Core annotation logic for bedforge.

This module contains the record model and the algorithms operating on it:

- BED record model with fail-fast field access
- Interval overlap, merging, spans and discretization
- CDS/UTR fraction extraction
- Block grafting

Example:
    >>> from bedforge.core import FractionMode, extract_fraction
    >>> cds = extract_fraction(record, FractionMode.CDS)
"""

from bedforge.core.fraction import FractionMode, extract_fraction, fraction_line
from bedforge.core.graft import graft
from bedforge.core.intervals import (
    bounding_span,
    discretize,
    merge_all,
    merge_pair,
    overlap_length,
    sort_intervals,
)
from bedforge.core.records import (
    BedEntry,
    Coordinates,
    Interval,
    Named,
    Stranded,
    UtrBlock,
    UtrSide,
)

__all__: list[str] = [
    # Records
    "BedEntry",
    "Coordinates",
    "Interval",
    "Named",
    "Stranded",
    "UtrBlock",
    "UtrSide",
    # Interval algebra
    "bounding_span",
    "discretize",
    "merge_all",
    "merge_pair",
    "overlap_length",
    "sort_intervals",
    # Fractions
    "FractionMode",
    "extract_fraction",
    "fraction_line",
    # Grafting
    "graft",
]
