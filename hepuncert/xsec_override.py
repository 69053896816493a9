"""
Reference cross-section override.

An optional post-parse step that replaces each bin's measured cross
section with a reference (e.g. Standard Model) prediction, so bands
are expressed relative to the reference instead of the measurement.

The table is whitespace delimited, one variable per line::

    pT_yy  1.2 0.85 0.4 0.11
    N_j_30 3.1 1.2 0.5

Every variable of the dataset must appear with exactly one value per
bin.
"""

import dataclasses
import logging
import math
import os
import warnings
from typing import Dict, Iterable, List

from .data_model import Dataset, Variable
from .errors import HepDataWarning, XsecMergeError

logger = logging.getLogger(__name__)


def parse_xsec_table(lines: Iterable[str], source: str = "<table>") -> Dict[str, List[float]]:
    """Parse ``name v0 v1 …`` lines into ``{name: [v0, v1, …]}``.

    Blank lines and ``#`` comments are skipped.  A repeated name is
    warned about and the first row kept.
    """
    table: Dict[str, List[float]] = {}
    for line_idx, raw_line in enumerate(lines, start=1):
        tokens = raw_line.split()
        if not tokens or tokens[0].startswith('#'):
            continue
        name = tokens[0]
        try:
            values = [float(t) for t in tokens[1:]]
        except ValueError as exc:
            raise XsecMergeError(
                f"Non-numeric cross section in '{source}' line {line_idx}: {exc}"
            ) from None
        if not all(math.isfinite(v) for v in values):
            raise XsecMergeError(
                f"Non-finite cross section in '{source}' line {line_idx}"
            )
        if name in table:
            warnings.warn(
                f"Duplicate reference cross-section row '{name}' at line "
                f"{line_idx} in '{source}' — skipping duplicate.",
                HepDataWarning,
                stacklevel=2,
            )
            continue
        table[name] = values
    return table


def load_xsec_table(filepath: str) -> Dict[str, List[float]]:
    """Read a reference cross-section table from *filepath*."""
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"Reference cross-section file not found: {filepath}")
    with open(filepath, 'r', encoding='utf-8-sig') as fh:
        return parse_xsec_table(fh, os.path.basename(filepath))


def apply_xsec_override(dataset: Dataset, table: Dict[str, List[float]]) -> Dataset:
    """Return a copy of *dataset* with every bin ``xsec`` taken from *table*.

    The input dataset is left untouched.

    Raises
    ------
    XsecMergeError
        If a variable has no row in *table*, or its row length differs
        from the variable's bin count.
    """
    variables: Dict[str, Variable] = {}
    for name, var in dataset.variables.items():
        if name not in table:
            raise XsecMergeError(f"No reference cross section for variable {name}")
        xs = table[name]
        if len(xs) != len(var.bins):
            raise XsecMergeError(
                f"Unequal binning in reference cross sections for {name}: "
                f"{len(var.bins)} bins, {len(xs)} values"
            )
        bins = [dataclasses.replace(b, xsec=x) for b, x in zip(var.bins, xs)]
        variables[name] = Variable(name, bins)

    logger.info("Applied reference cross sections to %d variables", len(variables))
    return Dataset(variables=variables, source_file=dataset.source_file)
