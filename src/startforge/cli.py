"""Command-line interface for StartForge.

This module provides the main entry point for the startforge CLI tool.
It uses Click to define one command per stage of the start-calling
workflow.

Commands:
    train: Build a labeled training table from a directory of genomes
    test: Build a feature table with expected classes and roles
    predict: Build an unlabeled feature table for new contigs
    finish: Keep the best-scored start of every ORF

Data tables go to standard output (or -o); status messages go to
standard error.

Example:
    $ startforge --help
    $ startforge train genomes/ --balance 1.2 -o training.tbl
    $ startforge test genome.fa genome.gff3 genome.stops.tbl --roles roles.tbl -o test.tbl
    $ startforge predict contigs.fa contigs.stops.tbl -o starts.tbl
    $ startforge finish contigs.stops.tbl scored.tbl --alt -o final.tbl
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

import click
from rich.console import Console

from startforge import __version__
from startforge.config import Config
from startforge.utils.logging import Timer, setup_logging

# Status output goes to stderr so tables on stdout stay clean
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _open_output(output: Optional[Path]) -> IO[str]:
    """Open the output file, or standard output when none is given."""
    return click.open_file(str(output) if output is not None else "-", "w")


def _fail(error: Exception, verbose: bool) -> None:
    console.print(f"[red]Error:[/red] {error}")
    if verbose:
        import traceback
        traceback.print_exc()
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="startforge")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a debug log to this file.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    log_file: Optional[Path],
    config_path: Optional[Path],
) -> None:
    """StartForge: Prepare and finish data for a bacterial start-codon classifier.

    StartForge scans contigs for candidate start codons inside the open
    reading frames defined by a start/stop predictor, turns each candidate
    into a feature vector, and reduces the classifier's scores to one start
    per ORF.
    """
    verbosity = 2 if verbose else 0 if quiet else 1
    setup_logging(verbosity=verbosity, log_file=log_file)

    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    try:
        ctx.obj["config"] = Config.load(config_path)
    except Exception as e:
        _fail(e, verbose)


# =============================================================================
# train command
# =============================================================================


@main.command()
@click.argument(
    "genome_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "-m",
    "--max-false-starts",
    type=int,
    default=None,
    help="Maximum false starts written per genome. [default: 6000]",
)
@click.option(
    "-b",
    "--balance",
    type=float,
    default=None,
    help="Class balance fuzz factor: 0 (off) or 1.0-2.0.",
)
@click.option("--seed", type=int, default=None, help="Random seed for sampling.")
@click.option(
    "--strand",
    type=click.Choice(["+", "-"]),
    default=None,
    help="Strand of the annotated features used as true starts.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output training table (default: stdout).",
)
@click.pass_context
def train(
    ctx: click.Context,
    genome_dir: Path,
    max_false_starts: Optional[int],
    balance: Optional[float],
    seed: Optional[int],
    strand: Optional[str],
    output: Optional[Path],
) -> None:
    """Build a labeled training table from a directory of genomes.

    GENOME_DIR holds, for every genome ID, a FASTA file (.fa, .fasta or
    .fna), a GFF3 annotation (.gff3 or .gff) and a start/stop prediction
    table (.stops.tbl). Candidates at annotated starts are labeled
    "start"; a random sample of the rest is labeled "other".
    """
    from startforge.core.dataset import TrainingSetBuilder
    from startforge.io.balanced import BalancedWriter
    from startforge.io.genome import GenomeDirectory

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    config: Config = ctx.obj["config"]

    try:
        if max_false_starts is not None:
            config.training.max_false_starts = max_false_starts
        if balance is not None:
            config.training.balance_fuzz = balance
        if seed is not None:
            config.training.seed = seed
        if strand is not None:
            config.scan.strand = strand

        directory = GenomeDirectory(genome_dir, feature_types=config.scan.feature_types)

        with Timer("Training set", logger), _open_output(output) as out:
            writer = BalancedWriter(
                out, fuzz=config.training.balance_fuzz, seed=config.training.seed
            )
            builder = TrainingSetBuilder(
                writer,
                max_false_starts=config.training.max_false_starts,
                strand=config.scan.strand,
            )
            counts = builder.build(directory)

        if not quiet:
            console.print("[bold]Training Set Summary:[/bold]")
            console.print(f"  Genomes:       {len(directory):,}")
            console.print(f"  True starts:   {counts.get('start', 0):,}")
            console.print(f"  False starts:  {counts.get('other', 0):,}")
            if output is not None:
                console.print(f"[green]Wrote training table:[/green] {output}")

    except Exception as e:
        _fail(e, verbose)


# =============================================================================
# test command
# =============================================================================


@main.command("test")
@click.argument("genome_fasta", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("genome_gff", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("predictions", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--roles",
    "roles_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Role map file (role ID <TAB> role name); known roles are written as IDs.",
)
@click.option(
    "--strand",
    type=click.Choice(["+", "-"]),
    default=None,
    help="Strand of the annotated features used as true starts.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output feature table (default: stdout).",
)
@click.pass_context
def test_table(
    ctx: click.Context,
    genome_fasta: Path,
    genome_gff: Path,
    predictions: Path,
    roles_file: Optional[Path],
    strand: Optional[str],
    output: Optional[Path],
) -> None:
    """Build a feature table with expected classes for an annotated genome.

    Every candidate is followed by an "expect" column ("start" when an
    annotated feature begins at the candidate, else "other") and a
    "roles" column with the roles of that feature.
    """
    from startforge.core.dataset import write_test_table
    from startforge.core.orfs import read_prediction_file
    from startforge.io.genome import Genome
    from startforge.io.roles import RoleMap

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    config: Config = ctx.obj["config"]

    try:
        if strand is not None:
            config.scan.strand = strand

        role_map = RoleMap.load(roles_file) if roles_file is not None else None
        genome = Genome.load(genome_fasta, genome_gff, feature_types=config.scan.feature_types)
        orf_indexes = read_prediction_file(predictions)

        with Timer("Test table", logger), _open_output(output) as out:
            n_rows = write_test_table(
                genome, orf_indexes, out, role_map=role_map, strand=config.scan.strand
            )

        if not quiet and output is not None:
            console.print(f"[green]Wrote {n_rows:,} candidates:[/green] {output}")

    except Exception as e:
        _fail(e, verbose)


# =============================================================================
# predict command
# =============================================================================


@main.command()
@click.argument("genome_fasta", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("predictions", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output feature table (default: stdout).",
)
@click.pass_context
def predict(
    ctx: click.Context,
    genome_fasta: Path,
    predictions: Path,
    output: Optional[Path],
) -> None:
    """Build an unlabeled feature table for the contigs of a FASTA file."""
    from startforge.core.dataset import write_predict_table
    from startforge.core.orfs import read_prediction_file
    from startforge.io.genome import Genome

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)

    try:
        genome = Genome.load(genome_fasta)
        orf_indexes = read_prediction_file(predictions)

        with Timer("Feature table", logger), _open_output(output) as out:
            n_rows = write_predict_table(genome, orf_indexes, out)

        if not quiet and output is not None:
            console.print(f"[green]Wrote {n_rows:,} candidates:[/green] {output}")

    except Exception as e:
        _fail(e, verbose)


# =============================================================================
# finish command
# =============================================================================


@main.command()
@click.argument("predictions", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("scored_starts", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--alt",
    is_flag=True,
    help="Write only accepted starts as contig/start/stop/confidence rows.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output table (default: stdout).",
)
@click.pass_context
def finish(
    ctx: click.Context,
    predictions: Path,
    scored_starts: Path,
    alt: bool,
    output: Optional[Path],
) -> None:
    """Keep the best-scored start of every ORF.

    PREDICTIONS is the start/stop prediction table used to build the
    feature table; SCORED_STARTS is the classifier output, with
    "location", "predicted" and "confidence" columns.
    """
    from startforge.core.finish import BestStartResolver, make_writer
    from startforge.core.orfs import read_prediction_file

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    config: Config = ctx.obj["config"]

    try:
        if alt:
            config.finish.output_format = "compact"

        resolver = BestStartResolver(read_prediction_file(predictions))

        with Timer("Start resolution", logger), _open_output(output) as out:
            stats = resolver.resolve_file(scored_starts, make_writer(config.finish.output_format, out))

        if not quiet:
            console.print("[bold]Start Calls:[/bold]")
            console.print(f"  Candidates:  {stats.n_records:,}")
            console.print(f"  Accepted:    {stats.n_accepted:,}")
            console.print(f"  Rejected:    {stats.n_rejected:,}")
            if output is not None:
                console.print(f"[green]Wrote final starts:[/green] {output}")

    except Exception as e:
        _fail(e, verbose)


if __name__ == "__main__":
    main()
