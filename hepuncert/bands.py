"""
Band aggregation for the HepData Uncertainty Band Plotter.

Turns each bin's uncertainty sources into an ordered vector of band
components, combines the components cumulatively in quadrature,
normalises by the bin cross section and transposes the result into
one sequence per band.

Component order per bin:

    plain mode:  [lumi, √Σ other², fit ⊕ bkg_model_uncorr, stat]
    corr mode:   [selected₀, …, selectedₖ₋₁, √Σ other²]

Cumulative combination (bands are nested, not stacked):

    v[i] ← √(v[i]² + v[i−1]²)   for i ≥ 1

so the last component is the total uncertainty of the bin.
"""

import logging
import math
import warnings
from typing import Dict, List, Optional

import numpy as np

from .constants import (
    CORR_SOURCE_LABELS, EXCLUDED_SOURCES, MAX_SELECTED_SOURCES, MODE_CORR,
    MODE_PLAIN, OPLUS, OTHERS_LABEL, PLAIN_BAND_LABELS, SOURCE_BKG_MODEL_UNCORR,
    SOURCE_FIT, SOURCE_LUMI,
)
from .data_model import Bin, Dataset, SourceSelection, Variable, VariableBands
from .errors import (
    EmptyVariableError, HepDataWarning, MissingSourceError,
    ZeroCrossSectionError,
)
from .selector import select_sources

logger = logging.getLogger(__name__)


def qadd(*values: float) -> float:
    """Combine values in quadrature: ``√Σ v²``."""
    return math.sqrt(sum(v * v for v in values))


def lookup_source(b: Bin, name: str, variable_name: str, bin_index: int) -> float:
    """Return the magnitude of source *name* in bin *b*.

    Raises
    ------
    MissingSourceError
        If the bin has no such source.
    """
    try:
        return b.sources[name]
    except KeyError:
        raise MissingSourceError(name, variable_name, bin_index, b.min) from None


def plain_vector(b: Bin, variable_name: str = "", bin_index: int = 0) -> List[float]:
    """Four-component vector: lumi, other systematics, fit, statistics."""
    lumi = lookup_source(b, SOURCE_LUMI, variable_name, bin_index)

    # Summed in name order
    other_sq = 0.0
    for name in sorted(b.sources):
        if name in EXCLUDED_SOURCES:
            continue
        value = b.sources[name]
        other_sq += value * value

    fit = qadd(
        lookup_source(b, SOURCE_FIT, variable_name, bin_index),
        lookup_source(b, SOURCE_BKG_MODEL_UNCORR, variable_name, bin_index),
    )
    return [lumi, math.sqrt(other_sq), fit, b.stat]


def correlated_vector(
    b: Bin,
    selection: SourceSelection,
    variable_name: str = "",
    bin_index: int = 0,
) -> List[float]:
    """Selected sources one by one, then the quadrature sum of the rest."""
    vec = [
        lookup_source(b, name, variable_name, bin_index)
        for name in selection.selected
    ]
    other_sq = 0.0
    for name in selection.other:
        value = lookup_source(b, name, variable_name, bin_index)
        other_sq += value * value
    vec.append(math.sqrt(other_sq))
    return vec


def raw_band_matrix(
    variable: Variable,
    selection: Optional[SourceSelection] = None,
) -> np.ndarray:
    """Per-bin component vectors before accumulation and normalisation.

    Returns an array of shape ``(n_bins, n_components)``.  Plain mode
    when *selection* is ``None``, correlated mode otherwise.
    """
    if not variable.bins:
        raise EmptyVariableError(variable.name)
    if selection is None:
        rows = [
            plain_vector(b, variable.name, i)
            for i, b in enumerate(variable.bins)
        ]
    else:
        rows = [
            correlated_vector(b, selection, variable.name, i)
            for i, b in enumerate(variable.bins)
        ]
    return np.array(rows, dtype=float)


def cumulative_quadrature(matrix: np.ndarray) -> np.ndarray:
    """Combine components cumulatively in quadrature, in place.

    Operates along the last axis, so both a single vector and an
    ``(n_bins, n_components)`` matrix are accepted.  Returns *matrix*.
    """
    for i in range(1, matrix.shape[-1]):
        matrix[..., i] = np.sqrt(matrix[..., i] ** 2 + matrix[..., i - 1] ** 2)
    return matrix


def band_labels(selection: Optional[SourceSelection] = None) -> List[str]:
    """Legend labels matching the component order."""
    if selection is None:
        return list(PLAIN_BAND_LABELS)
    labels = []
    for i, name in enumerate(selection.selected):
        text = CORR_SOURCE_LABELS.get(name, name)
        labels.append(f"{OPLUS} {text}" if i else text)
    labels.append(OTHERS_LABEL)
    return labels


def compute_variable_bands(
    variable: Variable,
    corr: bool = False,
    max_selected: int = MAX_SELECTED_SOURCES,
) -> VariableBands:
    """Compute the normalised cumulative bands of one variable.

    Parameters
    ----------
    variable : Variable
        Parsed variable with at least one bin.
    corr : bool
        Correlated-sources mode: show the *max_selected* most significant
        sources individually and merge the rest.
    max_selected : int
        Bound on individually shown sources in correlated mode.

    Returns
    -------
    VariableBands

    Raises
    ------
    EmptyVariableError
        If the variable has no bins.
    MissingSourceError
        If a bin lacks a source required by the active mode.
    ZeroCrossSectionError
        If a bin cross section is zero.
    """
    if not variable.bins:
        raise EmptyVariableError(variable.name)

    selection = select_sources(variable, max_selected) if corr else None
    if selection is not None:
        logger.debug(
            "%s: selected %s, merged %d others",
            variable.name, ", ".join(selection.selected), len(selection.other),
        )

    matrix = cumulative_quadrature(raw_band_matrix(variable, selection))

    xsec = np.array([b.xsec for b in variable.bins], dtype=float)
    zero = np.flatnonzero(xsec == 0)
    if zero.size:
        raise ZeroCrossSectionError(variable.name, int(zero[0]))
    matrix /= xsec[:, np.newaxis]

    return VariableBands(
        name=variable.name,
        edges=np.array(variable.edges, dtype=float),
        bands=np.ascontiguousarray(matrix.T),
        labels=band_labels(selection),
        mode=MODE_CORR if corr else MODE_PLAIN,
        selection=selection,
    )


def compute_dataset_bands(
    dataset: Dataset,
    corr: bool = False,
    max_selected: int = MAX_SELECTED_SOURCES,
) -> Dict[str, VariableBands]:
    """Compute bands for every variable, in dataset order.

    Variables without bins are skipped with a ``HepDataWarning``; any
    other aggregation error aborts the whole computation.
    """
    result: Dict[str, VariableBands] = {}
    for name, variable in dataset.variables.items():
        if not variable.bins:
            warnings.warn(
                f"Variable '{name}' has no bins — skipping.",
                HepDataWarning,
                stacklevel=2,
            )
            continue
        logger.info("Computing bands for %s", name)
        result[name] = compute_variable_bands(variable, corr, max_selected)
    return result
