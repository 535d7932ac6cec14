"""Input/output handlers for bedforge.

This module provides the BED line codec and file readers/writers:

- Line parsing with format inference and validation
- Line rendering at the record's own or a lower format
- Streaming readers for plain and gzip-compressed files

Example:
    >>> from bedforge.io import read_bed, write_bed
    >>> records = read_bed("transcripts.bed", format=12)
    >>> write_bed(records, "copy.bed")
"""

from bedforge.io.bed import (
    BED_FORMATS,
    BedReader,
    BedWriter,
    format_bed_entry,
    parse_bed_line,
    read_bed,
    write_bed,
)

__all__: list[str] = [
    "BED_FORMATS",
    "BedReader",
    "BedWriter",
    "format_bed_entry",
    "parse_bed_line",
    "read_bed",
    "write_bed",
]
