"""
Entry point for the HepData Uncertainty Band Plotter.

Usage:
    python -m hepuncert bands data.hepdata [--corr] [--burst] [--sm ref.txt]
    python -m hepuncert crosscheck modes.txt [--prt-bins] [--vals NAME ...]
    python -m hepuncert example ./example_data
"""

import argparse
import logging
import os
import sys
import warnings
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from . import APP_NAME, APP_VERSION

if TYPE_CHECKING:
    from matplotlib.figure import Figure

EXIT_OK = 0
EXIT_ERROR = 1

logger = logging.getLogger("hepuncert")


def _check_dependencies():
    """Verify required packages are installed."""
    missing = []
    try:
        import matplotlib  # noqa: F401
    except ImportError:
        missing.append("matplotlib")
    try:
        import numpy  # noqa: F401
    except ImportError:
        missing.append("numpy")

    if missing:
        print(
            f"Missing required packages: {', '.join(missing)}\n"
            f"Install with: pip install {' '.join(missing)}",
            file=sys.stderr,
        )
        sys.exit(EXIT_ERROR)


def _colour(text: str, code: str) -> str:
    if sys.stderr.isatty():
        return f"\033[{code}m{text}\033[0m"
    return text


def _format_warning(message, category, filename, lineno, line=None):
    """One-line warning format without source echo."""
    return _colour(f"{category.__name__}: {message}", "33") + "\n"


def _configure_logging(verbosity: int) -> None:
    if verbosity > 0:
        level = logging.DEBUG
    elif verbosity < 0:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)-7s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    warnings.formatwarning = _format_warning


def _fmt_values(values) -> str:
    return " ".join(f"{x:g}" for x in values)


# ── bands ────────────────────────────────────────────────────────────────

def _chart_pages(
    all_bands: Dict,
    *,
    reference_xsec: bool,
    y_range: Optional[float],
    labels: Dict[str, str],
) -> Iterator[Tuple[str, "Figure"]]:
    from matplotlib.figure import Figure

    from .chart_uncert_band import render_uncert_bands
    from .constants import FIGURE_SIZE_INCHES

    fig = Figure(figsize=FIGURE_SIZE_INCHES)
    for name, var_bands in all_bands.items():
        render_uncert_bands(
            fig, var_bands,
            reference_xsec=reference_xsec,
            y_range=y_range,
            **labels,
        )
        yield name, fig


def run_bands(args: argparse.Namespace) -> int:
    """Parse a HepData file, compute bands, and write the requested outputs."""
    from .bands import compute_dataset_bands
    from .export import (
        book_path, export_burst, export_pdf_book, write_band_table,
        write_bands_json,
    )
    from .hepdata_parser import load_hepdata, variable_summary
    from .xsec_override import apply_xsec_override, load_xsec_table

    dataset = load_hepdata(args.file)
    for line in variable_summary(dataset):
        logger.debug(line)

    reference_xsec = args.sm is not None
    if reference_xsec:
        dataset = apply_xsec_override(dataset, load_xsec_table(args.sm))

    all_bands = compute_dataset_bands(
        dataset, corr=args.corr, max_selected=args.max_selected,
    )

    if args.table:
        with open(args.table, 'w', encoding='utf-8') as fh:
            write_band_table(fh, all_bands.values())
        logger.info("Wrote %s", args.table)
    if args.json:
        write_bands_json(args.json, all_bands.values())

    if args.no_plots:
        return EXIT_OK

    pages = _chart_pages(
        all_bands,
        reference_xsec=reference_xsec,
        y_range=args.y_range,
        labels={
            'experiment_label': args.experiment_label,
            'status_label': args.status_label,
            'process_label': args.process_label,
        },
    )
    os.makedirs(args.output_dir, exist_ok=True)
    if args.burst or args.format != "pdf":
        export_burst(pages, args.output_dir, args.corr, fmt=args.format)
    else:
        export_pdf_book(pages, book_path(args.output_dir, args.corr))
    return EXIT_OK


# ── crosscheck ───────────────────────────────────────────────────────────

def run_crosscheck(args: argparse.Namespace) -> int:
    """Validate a mode table and optionally sum quantities over modes."""
    from .errors import HepDataWarning
    from .mode_table import load_mode_table

    with warnings.catch_warnings():
        if args.no_warnings:
            warnings.simplefilter("ignore", HepDataWarning)
        table = load_mode_table(args.file)

    bins = table.binning()
    if args.prt_bins:
        for var, edges in bins.items():
            print(f"{var}: {_fmt_values(edges)}")
        print()

    modes = table.modes()
    if args.prt_modes:
        for mode in modes:
            print(mode)
        print()

    if args.prt_vals:
        for name in table.quantity_names():
            print(name)
        print()

    if args.vals:
        sums = table.sum_over_modes(args.vals)
        for quantity, per_var in sums.items():
            print(quantity)
            for var, values in per_var.items():
                print(f"  {var} {_fmt_values(values)}")
        print()
    return EXIT_OK


# ── example ──────────────────────────────────────────────────────────────

def run_example(args: argparse.Namespace) -> int:
    """Write the synthetic example files."""
    from .example_data import generate_example_files

    paths = generate_example_files(args.output_dir)
    for kind, path in paths.items():
        print(f"  {kind}: {path}")
    return EXIT_OK


# ── Argument parsing ─────────────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    from .constants import (
        DEFAULT_EXPERIMENT_LABEL, DEFAULT_PROCESS_LABEL, DEFAULT_STATUS_LABEL,
        MAX_SELECTED_SOURCES,
    )

    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(
        prog="hepuncert",
        description=f"{APP_NAME} v{APP_VERSION}",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="More output (debug messages)")
    p.add_argument("-q", "--quiet", action="count", default=0,
                   help="Less output (warnings and errors only)")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("bands", help="Compute and plot uncertainty bands from a HepData file")
    b.add_argument("file", help="HepData input file")
    b.add_argument("--sm", metavar="FILE", default=None,
                   help="Reference cross-section table (name v0 v1 ...) replacing measured cross sections")
    b.add_argument("--corr", action="store_true",
                   help="Show the most significant correlated sources individually")
    b.add_argument("--max-selected", dest="max_selected", type=int,
                   default=MAX_SELECTED_SOURCES,
                   help=f"Individually shown sources in --corr mode (default {MAX_SELECTED_SOURCES})")
    b.add_argument("--burst", action="store_true",
                   help="One output file per variable instead of a multi-page PDF")
    b.add_argument("--format", choices=["pdf", "png", "svg"], default="pdf",
                   help="Chart file format; non-PDF formats imply --burst (default pdf)")
    b.add_argument("-o", "--output-dir", dest="output_dir", default=".",
                   help="Directory for chart files (default: current directory)")
    b.add_argument("--y-range", dest="y_range", type=float, default=None,
                   help="Fixed symmetric y half-range for all charts")
    b.add_argument("--table", metavar="FILE", default=None,
                   help="Also write the bands as a text table")
    b.add_argument("--json", metavar="FILE", default=None,
                   help="Also write the bands as JSON")
    b.add_argument("--no-plots", dest="no_plots", action="store_true",
                   help="Skip chart rendering")
    b.add_argument("--experiment-label", dest="experiment_label",
                   default=DEFAULT_EXPERIMENT_LABEL)
    b.add_argument("--status-label", dest="status_label",
                   default=DEFAULT_STATUS_LABEL)
    b.add_argument("--process-label", dest="process_label",
                   default=DEFAULT_PROCESS_LABEL)
    b.set_defaults(func=run_bands)

    c = sub.add_parser("crosscheck", help="Validate a mode.variable.quantity table")
    c.add_argument("file", help="Mode table file")
    c.add_argument("--vals", nargs="+", default=[], metavar="NAME",
                   help="Quantities to sum over modes")
    c.add_argument("--prt-bins", dest="prt_bins", action="store_true",
                   help="Print the binning of each variable")
    c.add_argument("--prt-modes", dest="prt_modes", action="store_true",
                   help="Print the mode names")
    c.add_argument("--prt-vals", dest="prt_vals", action="store_true",
                   help="Print all quantity names")
    c.add_argument("--no-warnings", dest="no_warnings", action="store_true",
                   help="Suppress formatting and duplicate-entry warnings")
    c.set_defaults(func=run_crosscheck)

    e = sub.add_parser("example", help="Write synthetic example input files")
    e.add_argument("output_dir", help="Directory to write into")
    e.set_defaults(func=run_example)

    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line interface; returns the exit status."""
    _check_dependencies()

    from .errors import HepDataError

    args = parse_args(argv)
    _configure_logging(args.verbose - args.quiet)

    if args.command == "bands" and args.max_selected < 0:
        print(_colour("--max-selected must be non-negative", "31"), file=sys.stderr)
        return EXIT_ERROR

    try:
        return args.func(args)
    except (HepDataError, OSError) as exc:
        print(_colour(str(exc), "31"), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
