"""BED file handling.

This module provides the line codec and file readers/writers for the BED
family of formats (3, 4, 5, 6, 8, 9 and 12 columns).

Features:
    - Parse BED lines into BedEntry records, inferring the column count
    - Render BedEntry records at their own or a lower format
    - Streaming iteration over plain or gzip-compressed files
    - Optional log-and-skip handling of malformed lines

Example:
    >>> from bedforge.io.bed import BedReader, write_bed
    >>> reader = BedReader("transcripts.bed", format=12)
    >>> records = [record.to_cds() for record in reader]
    >>> write_bed([r for r in records if r is not None], "cds.bed")
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, TextIO

from bedforge.core.records import BedEntry
from bedforge.errors import FormattingError, MissingTraitError, ParseError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Column counts that can be parsed and rendered
BED_FORMATS = (3, 4, 5, 6, 8, 9, 12)

# Lines carrying no record
HEADER_PREFIXES = ("#", "track", "browser")

STRAND_SYMBOLS = {"+": True, "-": False}

# BED column names, used in error messages
COLUMN_NAMES = (
    "chrom",
    "thinStart",
    "thinEnd",
    "name",
    "score",
    "strand",
    "thickStart",
    "thickEnd",
    "rgb",
    "exonCount",
    "exonSizes",
    "exonStarts",
)


# =============================================================================
# Line Codec
# =============================================================================


def _parse_int(value: str, column: int) -> int:
    """Parse a non-negative integer column."""
    if not (value.isascii() and value.isdigit()):
        raise ParseError(
            f"Invalid value for {COLUMN_NAMES[column]} (column {column + 1}): {value!r}"
        )
    return int(value)


def _parse_int_list(value: str, column: int) -> list[int]:
    """Parse a comma-separated list column (a trailing comma is allowed)."""
    return [_parse_int(item, column) for item in value.split(",") if item]


def parse_bed_line(line: str, format: int | None = None) -> BedEntry | None:
    """Parse a single BED line.

    Args:
        line: Raw tab-separated line.
        format: Expected column count. Inferred from the line if None.

    Returns:
        Validated BedEntry, or None for blank, comment, track and browser
        lines.

    Raises:
        ParseError: If the line is malformed or violates coordinate
            invariants.
    """
    line = line.rstrip()
    if not line.strip() or line.startswith(HEADER_PREFIXES):
        return None

    parts = line.split("\t")
    n_columns = len(parts)
    if format is None:
        format = n_columns
    if format not in BED_FORMATS:
        raise ParseError(
            f"Unsupported BED format: BED{format} (supported: "
            f"{', '.join(str(f) for f in BED_FORMATS)})"
        )
    if n_columns != format:
        raise ParseError(f"Expected {format} columns for BED{format}, got {n_columns}")

    fields: dict[str, Any] = {
        "chrom": parts[0],
        "thin_start": _parse_int(parts[1], 1),
        "thin_end": _parse_int(parts[2], 2),
    }
    if format >= 4:
        fields["name"] = parts[3]
    if format >= 5:
        fields["score"] = parts[4]
    if format >= 6:
        if parts[5] not in STRAND_SYMBOLS:
            raise ParseError(f"Invalid strand symbol: {parts[5]!r}")
        fields["strand"] = STRAND_SYMBOLS[parts[5]]
    if format >= 8:
        fields["thick_start"] = _parse_int(parts[6], 6)
        fields["thick_end"] = _parse_int(parts[7], 7)
    if format >= 9:
        fields["rgb"] = parts[8]
    if format == 12:
        fields["exon_count"] = _parse_int(parts[9], 9)
        fields["exon_sizes"] = _parse_int_list(parts[10], 10)
        fields["exon_starts"] = _parse_int_list(parts[11], 11)

    entry = BedEntry(format=format, **fields)
    entry.validate()
    return entry


def _format_int_list(values: list[int]) -> str:
    return "".join(f"{value}," for value in values)


def format_bed_entry(entry: BedEntry, format: int | None = None) -> str:
    """Render a record as a tab-separated BED line (without newline).

    Args:
        entry: Record to render.
        format: Column count to render. Defaults to the record's format;
            a lower format drops the trailing columns.

    Returns:
        Formatted BED line.

    Raises:
        FormattingError: If the format is unsupported or exceeds the
            record's format.
        MissingTraitError: If the record format is undefined or a required
            field is unset.
    """
    if format is None:
        format = entry.format
    if format not in BED_FORMATS and format != 0:
        raise FormattingError(f"Unsupported BED format: BED{format}")
    if entry.format == 0 or format == 0:
        raise MissingTraitError("Cannot format a BED entry with an undefined format")
    if entry.format < format:
        raise FormattingError(
            f"Cannot format a BED{entry.format} entry as BED{format}"
        )

    columns = [entry.chrom, str(entry.thin_start), str(entry.thin_end)]
    if format >= 4:
        columns.append(entry.name)
    if format >= 5:
        columns.append(entry.score)
    if format >= 6:
        columns.append("+" if entry.strand else "-")
    if format >= 8:
        columns.extend([str(entry.thick_start), str(entry.thick_end)])
    if format >= 9:
        columns.append(entry.rgb)
    if format == 12:
        columns.extend(
            [
                str(entry.exon_count),
                _format_int_list(entry.exon_sizes),
                _format_int_list(entry.exon_starts),
            ]
        )
    return "\t".join(columns)


# =============================================================================
# File Reader
# =============================================================================


def _open_text(path: Path, mode: str = "rt") -> TextIO:
    """Open a plain or gzip-compressed text file."""
    if path.suffix == ".gz":
        return gzip.open(path, mode)
    return open(path, mode)


class BedReader:
    """Stream BedEntry records from a BED file.

    Attributes:
        path: Path to the BED file.
        format: Expected column count (inferred per line if None).
        skip_invalid: Log and skip malformed lines instead of raising.
        n_skipped: Number of lines skipped during the last iteration.

    Example:
        >>> reader = BedReader("transcripts.bed.gz", format=12)
        >>> for record in reader:
        ...     print(record.name, record.exon_count)
    """

    def __init__(
        self,
        bed_path: Path | str,
        format: int | None = None,
        skip_invalid: bool = False,
    ) -> None:
        """Initialize the reader.

        Args:
            bed_path: Path to the BED file (``.gz`` files are decompressed).
            format: Expected column count.
            skip_invalid: Log and skip malformed lines.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        self.path = Path(bed_path)
        if not self.path.exists():
            raise FileNotFoundError(f"BED file not found: {self.path}")
        self.format = format
        self.skip_invalid = skip_invalid
        self.n_skipped = 0

    def __iter__(self) -> Iterator[BedEntry]:
        """Iterate over records in file order.

        Raises:
            ParseError: On a malformed line, unless ``skip_invalid`` is set.
        """
        self.n_skipped = 0
        n_records = 0
        with _open_text(self.path) as f:
            for line_number, line in enumerate(f, start=1):
                try:
                    entry = parse_bed_line(line, format=self.format)
                except ParseError as e:
                    if not self.skip_invalid:
                        raise ParseError(f"{self.path}:{line_number}: {e}") from e
                    logger.warning(f"Skipping malformed line {line_number} of {self.path}: {e}")
                    self.n_skipped += 1
                    continue
                if entry is not None:
                    n_records += 1
                    yield entry

        logger.info(
            f"Read {n_records} records from {self.path}"
            + (f" ({self.n_skipped} skipped)" if self.n_skipped else "")
        )


class BedWriter:
    """Write BedEntry records to a BED file.

    Example:
        >>> with BedWriter("out.bed", format=6) as writer:
        ...     writer.write_entries(records)
    """

    def __init__(self, output_path: Path | str, format: int | None = None) -> None:
        """Initialize the writer.

        Args:
            output_path: Output file path (``.gz`` files are compressed).
            format: Column count to render (each record's own if None).
        """
        self.path = Path(output_path)
        self.format = format
        self._file: TextIO | None = _open_text(self.path, "wt")
        self.n_written = 0

    def __enter__(self) -> BedWriter:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def close(self) -> None:
        """Close the output file."""
        if self._file:
            self._file.close()
            self._file = None

    def write_entry(self, entry: BedEntry) -> None:
        """Write a single record."""
        self._file.write(format_bed_entry(entry, self.format) + "\n")
        self.n_written += 1

    def write_entries(self, entries: Iterable[BedEntry]) -> None:
        """Write several records."""
        for entry in entries:
            self.write_entry(entry)


# =============================================================================
# Convenience Functions
# =============================================================================


def read_bed(
    path: Path | str,
    format: int | None = None,
    skip_invalid: bool = False,
) -> list[BedEntry]:
    """Read every record from a BED file.

    Args:
        path: Path to the BED file.
        format: Expected column count.
        skip_invalid: Log and skip malformed lines.

    Returns:
        List of BedEntry records.
    """
    return list(BedReader(path, format=format, skip_invalid=skip_invalid))


def write_bed(
    entries: Iterable[BedEntry],
    path: Path | str,
    format: int | None = None,
) -> int:
    """Write records to a BED file.

    Args:
        entries: Records to write.
        path: Output file path.
        format: Column count to render.

    Returns:
        Number of records written.
    """
    with BedWriter(path, format=format) as writer:
        writer.write_entries(entries)
        n_written = writer.n_written
    logger.info(f"Wrote {n_written} records to {path}")
    return n_written
