"""Command-line interface for rasqualtools."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import load_config
from .errors import FileFormatError, RasqualToolsError
from .export import save_rasqual_matrices
from .gc_correction import gc_correct
from .rasqual import RASQUAL_COLUMNS, DERIVED_COLUMNS, tabix_fetch_genes, tabix_fetch_snps
from .ranges import construct_gene_ranges, construct_snp_ranges
from .version import __version__

logger = logging.getLogger("rasqualtools")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the rasqualtools CLI."""
    parser = argparse.ArgumentParser(
        description="rasqualtools: Import RASQUAL results and prepare RASQUAL input files."
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"rasqualtools {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to configuration file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    genes = subparsers.add_parser(
        "fetch-genes", help="Fetch RASQUAL results for the cis regions of selected genes"
    )
    genes.add_argument("--tabix", required=True, help="Tabix-indexed RASQUAL output file")
    genes.add_argument(
        "--genes", required=True, help="File containing gene IDs, one per line"
    )
    genes.add_argument(
        "--metadata",
        required=True,
        help="Tab-separated gene metadata with columns gene_id, chr, start, end",
    )
    genes.add_argument(
        "--cis-window", type=int, default=None, help="Cis window around each gene (bp)"
    )
    genes.add_argument("-o", "--output-file", required=True, help="Output TSV file")

    snps = subparsers.add_parser("fetch-snps", help="Fetch RASQUAL results for selected SNPs")
    snps.add_argument("--tabix", required=True, help="Tabix-indexed RASQUAL output file")
    snps.add_argument(
        "--snps", required=True, help="Tab-separated SNP table with columns snp_id, chr, pos"
    )
    snps.add_argument("-o", "--output-file", required=True, help="Output TSV file")

    gc = subparsers.add_parser("gc-correct", help="Compute GC-content correction factors")
    gc.add_argument(
        "--counts",
        required=True,
        help="Tab-separated count matrix with a header row and feature IDs in the first column",
    )
    gc.add_argument(
        "--gc",
        required=True,
        help="Tab-separated table of feature IDs and GC content (header row, two columns)",
    )
    gc.add_argument("--bins", type=int, default=None, help="Number of GC quantile bins")
    gc.add_argument("--spar", type=float, default=None, help="Spline smoothing parameter")
    gc.add_argument("--plot", default=None, help="Write a diagnostic PNG to this path")
    gc.add_argument("--seed", type=int, default=None, help="Seed for tie-breaking")
    gc.add_argument("-o", "--output-file", required=True, help="Output TSV file")

    export = subparsers.add_parser("export", help="Write matrices in RASQUAL's txt/bin format")
    export.add_argument(
        "--matrix",
        action="append",
        required=True,
        metavar="NAME=FILE",
        help="Named tab-separated matrix (header row, row names in first column); repeatable",
    )
    export.add_argument("--output-dir", required=True, help="Directory to write files to")
    export.add_argument("--suffix", default=None, help="File suffix (default from config)")

    return parser


def _configure_logging(args: argparse.Namespace) -> Optional[logging.Handler]:
    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
    }
    logging.getLogger("rasqualtools").setLevel(log_level_map[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(log_level_map[args.log_level])
        fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")
        return fh
    return None


def _read_table(path: str, **kwargs) -> pd.DataFrame:
    try:
        return pd.read_csv(path, sep="\t", **kwargs)
    except pd.errors.EmptyDataError:
        raise FileFormatError(path, "non-empty tab-separated table")


def _read_gene_list(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def run_fetch_genes(args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    cis_window = args.cis_window if args.cis_window is not None else cfg["cis_window"]
    gene_metadata = _read_table(args.metadata)
    gene_ranges = construct_gene_ranges(_read_gene_list(args.genes), gene_metadata, cis_window)

    results = tabix_fetch_genes(gene_ranges, args.tabix)
    if results:
        combined = pd.concat(results.values(), ignore_index=True)
    else:
        combined = pd.DataFrame(columns=RASQUAL_COLUMNS + DERIVED_COLUMNS)
    combined.to_csv(args.output_file, sep="\t", index=False)
    logger.info(f"Wrote {len(combined)} rows for {len(results)} genes to {args.output_file}")


def run_fetch_snps(args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    snp_ranges = construct_snp_ranges(_read_table(args.snps))
    result = tabix_fetch_snps(snp_ranges, args.tabix)
    result.to_csv(args.output_file, sep="\t", index=False)
    logger.info(f"Wrote {len(result)} rows to {args.output_file}")


def run_gc_correct(args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    counts = _read_table(args.counts, index_col=0)
    gc_table = _read_table(args.gc, index_col=0)
    gc_values = gc_table.iloc[:, 0].reindex(counts.index)
    if gc_values.isna().any():
        missing = counts.index[gc_values.isna()].tolist()[:10]
        raise FileFormatError(args.gc, f"GC content for every feature (missing: {missing})")

    factors = gc_correct(
        counts,
        gc_values.to_numpy(),
        n_bins=args.bins if args.bins is not None else cfg["gc_bins"],
        spar=args.spar if args.spar is not None else cfg["spline_spar"],
        plot=args.plot is not None,
        plot_path=args.plot or "gc_correction.png",
        rng=args.seed,
    )
    factors.to_csv(args.output_file, sep="\t")
    logger.info(f"Wrote GC correction factors to {args.output_file}")


def run_export(args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    data = {}
    for matrix_arg in args.matrix:
        name, sep, path = matrix_arg.partition("=")
        if not sep or not name or not path:
            raise RasqualToolsError(f"--matrix expects NAME=FILE, got '{matrix_arg}'")
        data[name] = _read_table(path, index_col=0)

    Path(args.output_dir).mkdir(parents=True, exist_ok=True)
    save_rasqual_matrices(
        data, args.output_dir, args.suffix or cfg["file_suffix"], dtype=cfg["binary_dtype"]
    )


COMMANDS = {
    "fetch-genes": run_fetch_genes,
    "fetch-snps": run_fetch_snps,
    "gc-correct": run_gc_correct,
    "export": run_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Run main entry point for the rasqualtools CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Dispatch to the selected subcommand.
    """
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )

    parser = create_parser()
    args = parser.parse_args(argv)
    file_handler = _configure_logging(args)

    start_time = datetime.datetime.now()
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg = load_config(args.config)
        logger.debug(f"Configuration loaded: {cfg}")
        COMMANDS[args.command](args, cfg)
    except (RasqualToolsError, OSError, ValueError) as e:
        logger.error(str(e))
        return 1
    else:
        logger.info(f"{args.command} finished in {datetime.datetime.now() - start_time}")
        return 0
    finally:
        if file_handler is not None:
            logger.removeHandler(file_handler)
            file_handler.close()


if __name__ == "__main__":
    sys.exit(main())
