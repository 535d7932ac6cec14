"""Tests for BED line parsing, formatting and file I/O."""

import gzip
import logging

import pytest

from bedforge.core.records import BedEntry
from bedforge.errors import FormattingError, MissingTraitError, ParseError
from bedforge.io.bed import (
    BedReader,
    format_bed_entry,
    parse_bed_line,
    read_bed,
    write_bed,
)


# =============================================================================
# Test parsing
# =============================================================================


class TestParseBedLine:
    """Tests for parse_bed_line."""

    def test_bed3(self):
        """Three columns infer BED3."""
        entry = parse_bed_line("chr1\t100\t200")
        assert entry.format == 3
        assert (entry.chrom, entry.start, entry.end) == ("chr1", 100, 200)
        assert not entry.has("name")

    def test_bed6(self):
        """Six columns infer BED6 with a boolean strand."""
        entry = parse_bed_line("chr1\t100\t200\tfeat\t960\t-")
        assert entry.format == 6
        assert entry.name == "feat"
        assert entry.score == "960"
        assert entry.strand is False

    def test_bed12(self, baat_line):
        """Block lists drop the trailing comma."""
        entry = parse_bed_line(baat_line)
        assert entry.format == 12
        assert entry.exon_count == 4
        assert entry.exon_sizes == [2599, 203, 525, 152]
        assert entry.exon_starts == [0, 7703, 10522, 24438]
        assert (entry.thick_start, entry.thick_end) == (101362427, 101371404)

    def test_trailing_newline(self):
        """Line terminators are ignored."""
        assert parse_bed_line("chr1\t100\t200\n").end == 200

    def test_trailing_whitespace(self):
        """Trailing spaces and tabs after the last column are ignored."""
        entry = parse_bed_line("chr1\t100\t200\tfeat \t\r\n")
        assert entry.format == 4
        assert entry.name == "feat"

    @pytest.mark.parametrize(
        "line",
        ["", "   ", "# comment", "track name=genes", "browser position chr1:1-100"],
    )
    def test_no_record(self, line):
        """Blank and header lines carry no record."""
        assert parse_bed_line(line) is None

    def test_explicit_format_mismatch(self):
        """An explicit format requires that exact column count."""
        with pytest.raises(ParseError, match="Expected 12 columns"):
            parse_bed_line("chr1\t100\t200\tfeat", format=12)

    @pytest.mark.parametrize("n_columns", [1, 2, 7, 10, 11, 13])
    def test_unsupported_column_count(self, n_columns):
        """Column counts outside the BED family are rejected."""
        line = "\t".join(["chr1"] + ["1"] * (n_columns - 1))
        with pytest.raises(ParseError, match="Unsupported"):
            parse_bed_line(line)

    def test_bad_strand(self):
        """Only '+' and '-' are strand symbols."""
        with pytest.raises(ParseError, match="strand"):
            parse_bed_line("chr1\t100\t200\tfeat\t0\t.")

    @pytest.mark.parametrize("value", ["AAA", "-5", "1.5", "", "\u00b9", "\u0663"])
    def test_bad_number(self, value):
        """Coordinates must be non-negative integers."""
        with pytest.raises(ParseError, match="thinStart"):
            parse_bed_line(f"chr1\t{value}\t200")

    def test_bad_block_list(self, baat_line):
        """Block lists must hold integers."""
        fields = baat_line.split("\t")
        fields[10] = "2599,x,525,152,"
        with pytest.raises(ParseError, match="exonSizes"):
            parse_bed_line("\t".join(fields))

    def test_invariants_checked(self):
        """Parsed records are validated."""
        with pytest.raises(ParseError, match="cannot be larger"):
            parse_bed_line("chr1\t300\t200")


# =============================================================================
# Test formatting
# =============================================================================


class TestFormatBedEntry:
    """Tests for format_bed_entry."""

    @pytest.mark.parametrize(
        "fixture", ["baat_line", "qpctl_line", "meis3_line", "pseudogene_line"]
    )
    def test_round_trip_bed12(self, fixture, request):
        """Formatting a parsed line reproduces it."""
        line = request.getfixturevalue(fixture)
        assert format_bed_entry(parse_bed_line(line)) == line

    @pytest.mark.parametrize(
        "line",
        [
            "chr1\t0\t10",
            "chr1\t0\t10\tx",
            "chr1\t0\t10\tx\t5",
            "chr1\t0\t10\tx\t5\t+",
            "chr1\t0\t10\tx\t5\t-\t2\t8",
            "chr1\t0\t10\tx\t5\t-\t2\t8\t255,0,0",
        ],
    )
    def test_round_trip_narrow(self, line):
        """Formatting round-trips every narrower format."""
        assert format_bed_entry(parse_bed_line(line)) == line

    def test_lower_format(self, baat_line):
        """A lower format keeps the leading columns."""
        entry = parse_bed_line(baat_line)
        assert format_bed_entry(entry, 6) == "\t".join(baat_line.split("\t")[:6])

    def test_higher_format(self):
        """Records cannot be rendered above their own format."""
        entry = parse_bed_line("chr1\t0\t10\tx")
        with pytest.raises(FormattingError):
            format_bed_entry(entry, 6)

    def test_unsupported_format(self, baat_line):
        """Formats outside the BED family are rejected."""
        with pytest.raises(FormattingError):
            format_bed_entry(parse_bed_line(baat_line), 7)

    def test_undefined_format(self):
        """Records without a format cannot be rendered."""
        with pytest.raises(MissingTraitError):
            format_bed_entry(BedEntry())

    def test_missing_field(self):
        """Unset fields required by the format are reported."""
        entry = BedEntry(format=4, chrom="chr1", thin_start=0, thin_end=10)
        with pytest.raises(MissingTraitError, match="name"):
            format_bed_entry(entry)


# =============================================================================
# Test file I/O
# =============================================================================


class TestBedReader:
    """Tests for reading and writing BED files."""

    def test_read(self, write_bed_file, baat_line, qpctl_line):
        """Headers and blank lines are skipped."""
        path = write_bed_file(["track name=test", "", baat_line, "# note", qpctl_line])
        records = read_bed(path, format=12)
        assert [r.name for r in records] == ["ENST00000259407.7#BAAT", "NM_001163377.2#QPCTL"]

    def test_read_gzip(self, tmp_path, baat_line):
        """Compressed files are read transparently."""
        path = tmp_path / "input.bed.gz"
        with gzip.open(path, "wt") as f:
            f.write(baat_line + "\n")
        assert len(read_bed(path)) == 1

    def test_missing_file(self, tmp_path):
        """Missing files are reported on construction."""
        with pytest.raises(FileNotFoundError):
            BedReader(tmp_path / "missing.bed")

    def test_malformed_line(self, write_bed_file):
        """Parse errors carry the line number."""
        path = write_bed_file(["chr1\t0\t10", "chr1\t0\t10", "chr1\tAAA\t10"])
        with pytest.raises(ParseError, match=r":3:"):
            read_bed(path)

    def test_skip_invalid(self, write_bed_file, caplog):
        """Malformed lines can be logged and skipped."""
        path = write_bed_file(["chr1\t0\t10", "chr1\tAAA\t10", "chr1\t20\t30"])
        reader = BedReader(path, skip_invalid=True)
        with caplog.at_level(logging.WARNING, logger="bedforge.io.bed"):
            records = list(reader)
        assert [r.start for r in records] == [0, 20]
        assert reader.n_skipped == 1
        assert "Skipping malformed line 2" in caplog.text

    def test_skip_non_ascii_digits(self, write_bed_file):
        """Non-ASCII digits are malformed numbers and can be skipped."""
        path = write_bed_file(["chr1\t\u00b9\t10", "chr1\t20\t30"])
        assert [r.start for r in read_bed(path, skip_invalid=True)] == [20]
        with pytest.raises(ParseError, match=r":1:"):
            read_bed(path)

    def test_write_and_read(self, tmp_path, baat_line, pseudogene_line):
        """Written records read back equal."""
        records = [parse_bed_line(baat_line), parse_bed_line(pseudogene_line)]
        path = tmp_path / "out.bed"
        assert write_bed(records, path) == 2
        assert read_bed(path) == records

    def test_write_lower_format(self, tmp_path, baat_line):
        """Writers can narrow every record."""
        path = tmp_path / "out.bed.gz"
        write_bed([parse_bed_line(baat_line)], path, format=4)
        with gzip.open(path, "rt") as f:
            assert f.read() == "\t".join(baat_line.split("\t")[:4]) + "\n"
