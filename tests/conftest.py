"""Pytest configuration and shared fixtures for bedforge tests.

This module contains fixtures that are shared across multiple test modules.
Fixtures are organized by category:

- Line fixtures: Raw BED12 lines of real transcripts
- Record fixtures: Parsed and synthetic BedEntry records
- File fixtures: BED files written to a temporary directory
"""

from pathlib import Path
from typing import Callable

import pytest

from bedforge.core.records import BedEntry
from bedforge.io.bed import parse_bed_line


def tsv(text: str) -> str:
    """Join whitespace-separated fields with tabs."""
    return "\t".join(text.split())


# =============================================================================
# Line Fixtures
# =============================================================================


@pytest.fixture
def baat_line() -> str:
    """Coding transcript on the minus strand with 4 blocks."""
    return tsv(
        "chr9 101360416 101385006 ENST00000259407.7#BAAT 0 - 101362427 101371404 0 4 "
        "2599,203,525,152, 0,7703,10522,24438,"
    )


@pytest.fixture
def baat_cds_line() -> str:
    """The BAAT transcript clipped to its CDS."""
    return tsv(
        "chr9 101362427 101371404 ENST00000259407.7#BAAT 0 - 101362427 101371404 0 3 "
        "588,203,466, 0,5692,8511,"
    )


@pytest.fixture
def qpctl_line() -> str:
    """Coding transcript on the plus strand with 6 blocks."""
    return tsv(
        "chr19 45692665 45703987 NM_001163377.2#QPCTL 0 + 45692703 45703049 0 6 "
        "245,144,153,100,117,1084, 0,747,5881,6135,9132,10238,"
    )


@pytest.fixture
def selenow_line() -> str:
    """Coding transcript on the plus strand whose 5'-UTR spans one block."""
    return tsv(
        "chr19 47778702 47784682 ENST00000601048.6#SELENOW 0 + 47778785 47781370 0 6 "
        "112,25,54,75,99,393, 0,2022,2161,2405,2587,5587,"
    )


@pytest.fixture
def meis3_line() -> str:
    """Coding transcript on the minus strand with 13 blocks."""
    return tsv(
        "chr19 47403123 47422233 NM_001346148.2#MEIS3 0 - 47406476 47422191 0 13 "
        "430,67,84,59,77,149,112,150,51,51,160,173,45, "
        "0,3336,3764,3955,4228,5975,6312,11593,11927,13528,13680,14054,19065,"
    )


@pytest.fixture
def fkrp_line() -> str:
    """Coding transcript on the plus strand with a three-block 5'-UTR."""
    return tsv(
        "chr19 46746056 46758575 ENST00000318584.10#FKRP 0 + 46755450 46756938 0 4 "
        "34,62,151,3164, 0,1970,2458,9355,"
    )


@pytest.fixture
def linc_line() -> str:
    """Transcript whose CDS lies within its first block."""
    return tsv(
        "chr9 129489948 129513686 XM_047424327.1#LINC00963 0 + 129490480 129491083 0 4 "
        "1180,177,350,268, 0,3470,13374,23470,"
    )


@pytest.fixture
def pseudogene_line() -> str:
    """Non-coding transcript (thickStart == thickEnd == thinEnd)."""
    return tsv(
        "chr1 3205900 3216344 ENSMUST00000162897 0 - 3216344 3216344 0 2 "
        "1417,2736, 0,7708,"
    )


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def baat(baat_line: str) -> BedEntry:
    """Parsed BAAT transcript."""
    return parse_bed_line(baat_line)


@pytest.fixture
def simple_record() -> BedEntry:
    """Synthetic coding BED12 record on the plus strand.

    Blocks: [1000, 1300) and [1500, 2000); CDS: [1200, 1800).
    """
    return BedEntry(
        format=12,
        chrom="chr1",
        thin_start=1000,
        thin_end=2000,
        name="tx1",
        score="0",
        strand=True,
        thick_start=1200,
        thick_end=1800,
        rgb="0",
        exon_count=2,
        exon_sizes=[300, 500],
        exon_starts=[0, 500],
    )


@pytest.fixture
def noncoding_record() -> BedEntry:
    """Synthetic non-coding BED12 record with the same blocks."""
    return BedEntry(
        format=12,
        chrom="chr1",
        thin_start=1000,
        thin_end=2000,
        name="nc1",
        score="0",
        strand=False,
        thick_start=2000,
        thick_end=2000,
        rgb="0",
        exon_count=2,
        exon_sizes=[300, 500],
        exon_starts=[0, 500],
    )


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def write_bed_file(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing lines to a BED file in tmp_path."""

    def _write(lines: list[str], name: str = "input.bed") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines))
        return path

    return _write
