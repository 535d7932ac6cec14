"""Command-line interface for bedforge.

This module provides the main entry point for the bedforge CLI tool.
It uses Click to define commands for the record and interval operations.

Commands:
    fraction: Extract CDS/UTR fractions from BED12 transcripts
    graft: Splice additional blocks onto BED12 transcripts
    blocks: Split BED12 transcripts into per-block BED6 records
    merge: Merge overlapping intervals per chromosome
    span: Report the bounding span of each chromosome's intervals
    discretize: Split overlapping intervals into elementary pieces

Example:
    $ bedforge --help
    $ bedforge fraction transcripts.bed -m 5utr --introns -o 5utr_introns.bed
    $ bedforge graft transcripts.bed extensions.bed --upstream -o extended.bed
    $ bedforge discretize features.bed -o pieces.bed --map pieces.tsv
"""

from __future__ import annotations

import functools
from pathlib import Path
from typing import Iterable

import click
from rich.console import Console

from bedforge import __version__
from bedforge.config import Config
from bedforge.core.fraction import FractionMode, extract_fraction
from bedforge.core.graft import graft as graft_record
from bedforge.core.intervals import bounding_span, discretize, merge_all, sort_intervals
from bedforge.core.records import BedEntry, Interval
from bedforge.errors import BedForgeError
from bedforge.io.bed import format_bed_entry, read_bed
from bedforge.parallel.executor import RecordExecutor, create_progress_bar
from bedforge.utils.logging import Timer, setup_logging

# Messages go to stderr; BED output may go to stdout
console = Console(stderr=True)

FRACTION_MODES = [mode.value for mode in FractionMode]


# =============================================================================
# Helpers
# =============================================================================


def _fail(message: str, verbose: bool = False) -> None:
    """Report an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {message}")
    if verbose:
        console.print_exception()
    raise SystemExit(1)


def _write_lines(lines: Iterable[str], output: Path | None) -> int:
    """Write lines to a file, or stdout if output is None."""
    n_lines = 0
    with click.open_file(str(output) if output else "-", "w") as handle:
        for line in lines:
            handle.write(line + "\n")
            n_lines += 1
    return n_lines


def _interval_entry(interval: Interval, format: int) -> BedEntry:
    """Wrap an Interval as a BED3/BED4 record for output."""
    fields = {
        "chrom": interval.chrom,
        "thin_start": interval.start,
        "thin_end": interval.end,
    }
    if format >= 4:
        fields["name"] = interval.name
    return BedEntry(format=format, **fields)


def _group_by_chrom(records: Iterable[BedEntry]) -> dict[str, list[BedEntry]]:
    """Group records by chromosome, in order of first appearance."""
    groups: dict[str, list[BedEntry]] = {}
    for record in records:
        groups.setdefault(record.chrom, []).append(record)
    return groups


def _report(ctx: click.Context, n_written: int, output: Path | None, what: str) -> None:
    if not ctx.obj.get("quiet", False):
        target = output if output else "stdout"
        console.print(f"[green]Wrote {n_written:,} {what}:[/green] {target}")


input_argument = click.argument("input_bed", type=click.Path(exists=True, path_type=Path))
output_option = click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output BED file (default: stdout).",
)
skip_invalid_option = click.option(
    "--skip-invalid",
    is_flag=True,
    help="Log and skip malformed lines instead of failing.",
)


@click.group()
@click.version_option(version=__version__, prog_name="bedforge")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Write a debug-level log to this file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_path: Path | None,
    log_file: Path | None,
) -> None:
    """bedforge: interval algebra and transcript fractioning for BED files.

    bedforge extracts coding and untranslated fractions of BED12 transcripts,
    splices new blocks onto them, and merges or discretizes interval sets.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    verbosity = 0 if quiet else (2 if verbose else 1)
    setup_logging(verbosity=verbosity, log_file=log_file)

    try:
        ctx.obj["config"] = Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e), verbose)


# =============================================================================
# fraction command
# =============================================================================


@main.command()
@input_argument
@click.option(
    "-m",
    "--mode",
    type=click.Choice(FRACTION_MODES, case_sensitive=False),
    default=None,
    help="Fraction to extract [default: all, or the configured mode].",
)
@click.option("--introns", is_flag=True, help="Report introns instead of exons.")
@click.option("--bed6", is_flag=True, help="Report one BED6 record per block.")
@output_option
@click.option(
    "-t",
    "--threads",
    type=int,
    default=None,
    help="Number of parallel workers [default: configured max_workers].",
)
@skip_invalid_option
@click.pass_context
def fraction(
    ctx: click.Context,
    input_bed: Path,
    mode: str | None,
    introns: bool,
    bed6: bool,
    output: Path | None,
    threads: int | None,
    skip_invalid: bool,
) -> None:
    """Extract CDS or UTR fractions from BED12 transcripts.

    Transcripts whose requested fraction is empty (e.g. the CDS of a
    non-coding transcript) are omitted from the output. With --bed6 the
    score column holds each block's ordinal in transcript order.

    \b
    Examples:
        $ bedforge fraction transcripts.bed -m cds -o cds.bed
        $ bedforge fraction transcripts.bed -m 3utr --introns --bed6
    """
    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    config: Config = ctx.obj["config"]

    mode = mode or config.fraction.mode
    use_introns = introns or config.fraction.use_introns
    split_blocks = bed6 or config.fraction.split_blocks
    n_workers = threads if threads is not None else config.parallel.max_workers

    try:
        with Timer(f"Fraction extraction ({mode})"):
            records = read_bed(input_bed, format=12, skip_invalid=skip_invalid)
            func = functools.partial(
                extract_fraction,
                mode=FractionMode.parse(mode),
                use_introns=use_introns,
                split_blocks=split_blocks,
            )
            executor = RecordExecutor(n_workers=n_workers, backend=config.parallel.backend)

            if quiet:
                results, _ = executor.map_records(func, records, continue_on_error=False)
            else:
                with create_progress_bar(console) as progress:
                    task = progress.add_task("Extracting fractions", total=len(records))
                    executor.progress_callback = lambda done, total, _: progress.update(
                        task, completed=done
                    )
                    results, _ = executor.map_records(
                        func, records, continue_on_error=False
                    )

        lines = []
        for task_result in results:
            extracted = task_result.result
            if extracted is None:
                continue
            if isinstance(extracted, list):
                lines.extend(format_bed_entry(entry) for entry in extracted)
            else:
                lines.append(format_bed_entry(extracted))
        n_written = _write_lines(lines, output)

    except (BedForgeError, RuntimeError) as e:
        _fail(str(e), verbose)

    _report(ctx, n_written, output, "records")


# =============================================================================
# graft command
# =============================================================================


@main.command()
@click.argument("records_bed", type=click.Path(exists=True, path_type=Path))
@click.argument("additions_bed", type=click.Path(exists=True, path_type=Path))
@click.option("--upstream", is_flag=True, help="Append additions at the low-coordinate end.")
@click.option(
    "--downstream", is_flag=True, help="Append additions at the high-coordinate end."
)
@click.option("--allow-overlap", is_flag=True, help="Allow additions to overlap blocks.")
@click.option("--coding", is_flag=True, help="Treat additions as coding sequence.")
@click.option(
    "--ignore-chrom",
    is_flag=True,
    help="Accept additions located on another chromosome.",
)
@output_option
@skip_invalid_option
@click.pass_context
def graft(
    ctx: click.Context,
    records_bed: Path,
    additions_bed: Path,
    upstream: bool,
    downstream: bool,
    allow_overlap: bool,
    coding: bool,
    ignore_chrom: bool,
    output: Path | None,
    skip_invalid: bool,
) -> None:
    """Splice additional blocks onto BED12 transcripts.

    Additions (BED4 or wider) are matched to transcripts by name and grafted
    in coordinate order (reverse order with --upstream). Transcripts without
    additions are written unchanged.

    \b
    Examples:
        $ bedforge graft transcripts.bed extensions.bed --downstream -o out.bed
    """
    verbose = ctx.obj.get("verbose", False)
    config: Config = ctx.obj["config"]

    if upstream and downstream:
        _fail("--upstream and --downstream are mutually exclusive")

    require_same_chrom = config.graft.require_same_chrom and not ignore_chrom
    allow_overlap = allow_overlap or config.graft.allow_overlap
    coding = coding or config.graft.coding

    try:
        records = read_bed(records_bed, format=12, skip_invalid=skip_invalid)
        additions = read_bed(additions_bed, skip_invalid=skip_invalid)

        by_name: dict[str, list[BedEntry]] = {}
        for addition in additions:
            if addition.format < 4:
                _fail(f"Additions must carry a name column (got BED{addition.format})")
            by_name.setdefault(addition.name, []).append(addition)

        lines = []
        n_grafted = 0
        for record in records:
            ordered = sort_intervals(by_name.get(record.name, []))
            if upstream:
                # each upstream append moves thinStart below the next addition
                ordered.reverse()
            for addition in ordered:
                graft_record(
                    record,
                    addition,
                    in_place=True,
                    require_same_chrom=require_same_chrom,
                    allow_overlap=allow_overlap,
                    coding=coding,
                    append_upstream=upstream,
                    append_downstream=downstream,
                )
                n_grafted += 1
            lines.append(format_bed_entry(record))
        n_written = _write_lines(lines, output)

    except BedForgeError as e:
        _fail(str(e), verbose)

    if not ctx.obj.get("quiet", False):
        console.print(f"[blue]Grafted additions:[/blue] {n_grafted:,}")
    _report(ctx, n_written, output, "records")


# =============================================================================
# blocks command
# =============================================================================


@main.command()
@input_argument
@output_option
@skip_invalid_option
@click.pass_context
def blocks(
    ctx: click.Context, input_bed: Path, output: Path | None, skip_invalid: bool
) -> None:
    """Split BED12 transcripts into one BED6 record per block."""
    verbose = ctx.obj.get("verbose", False)
    try:
        records = read_bed(input_bed, format=12, skip_invalid=skip_invalid)
        lines = [
            format_bed_entry(block) for record in records for block in record.to_blocks()
        ]
        n_written = _write_lines(lines, output)
    except BedForgeError as e:
        _fail(str(e), verbose)

    _report(ctx, n_written, output, "blocks")


# =============================================================================
# merge / span commands
# =============================================================================


@main.command()
@input_argument
@output_option
@skip_invalid_option
@click.pass_context
def merge(
    ctx: click.Context, input_bed: Path, output: Path | None, skip_invalid: bool
) -> None:
    """Merge overlapping or touching intervals per chromosome (BED3 output)."""
    verbose = ctx.obj.get("verbose", False)
    try:
        records = read_bed(input_bed, skip_invalid=skip_invalid)
        lines = []
        for chrom_records in _group_by_chrom(records).values():
            for interval in merge_all(sort_intervals(chrom_records)):
                lines.append(format_bed_entry(_interval_entry(interval, 3)))
        n_written = _write_lines(lines, output)
    except BedForgeError as e:
        _fail(str(e), verbose)

    _report(ctx, n_written, output, "intervals")


@main.command()
@input_argument
@output_option
@skip_invalid_option
@click.pass_context
def span(
    ctx: click.Context, input_bed: Path, output: Path | None, skip_invalid: bool
) -> None:
    """Report the bounding span of each chromosome's intervals (BED4 output)."""
    verbose = ctx.obj.get("verbose", False)
    try:
        records = read_bed(input_bed, skip_invalid=skip_invalid)
        lines = [
            format_bed_entry(_interval_entry(bounding_span(chrom_records), 4))
            for chrom_records in _group_by_chrom(records).values()
        ]
        n_written = _write_lines(lines, output)
    except (BedForgeError, ValueError) as e:
        _fail(str(e), verbose)

    _report(ctx, n_written, output, "spans")


# =============================================================================
# discretize command
# =============================================================================


@main.command("discretize")
@input_argument
@output_option
@click.option(
    "--map",
    "map_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Output TSV mapping each piece to the intervals covering it.",
)
@skip_invalid_option
@click.pass_context
def discretize_command(
    ctx: click.Context,
    input_bed: Path,
    output: Path | None,
    map_path: Path | None,
    skip_invalid: bool,
) -> None:
    """Split overlapping named intervals into elementary pieces.

    Pieces are written as BED4 records named by their ordinal; the optional
    map lists, for every ordinal, the names of the input intervals covering
    the piece.

    \b
    Examples:
        $ bedforge discretize features.bed -o pieces.bed --map pieces.tsv
    """
    verbose = ctx.obj.get("verbose", False)
    try:
        records = read_bed(input_bed, skip_invalid=skip_invalid)
        pieces, provenance = discretize(records)
        n_written = _write_lines(
            (format_bed_entry(_interval_entry(piece, 4)) for piece in pieces), output
        )
        if map_path is not None:
            with open(map_path, "w") as f:
                f.write("piece\tsources\n")
                for ordinal, names in provenance.items():
                    f.write(f"{ordinal}\t{','.join(names)}\n")
    except BedForgeError as e:
        _fail(str(e), verbose)

    _report(ctx, n_written, output, "pieces")
    if map_path is not None and not ctx.obj.get("quiet", False):
        console.print(f"[green]Wrote provenance map:[/green] {map_path}")


if __name__ == "__main__":
    main()
