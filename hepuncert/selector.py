"""
Uncertainty source selection for correlated-sources mode.

Ranks every uncertainty source of a variable (except the reserved
``lumi``, ``fit`` and ``bkg_model_uncorr``) by its summed squared
relative magnitude over the bins, then keeps the most significant few
as individual bands and merges the rest into an "others" term.

    score(name) = Σ_bins (value / xsec)²

Bins that do not carry a source contribute nothing to its score.
Equal scores are ordered by name so the selection is reproducible.
"""

from typing import Dict, List

from .constants import EXCLUDED_SOURCES, MAX_SELECTED_SOURCES
from .data_model import RankedSource, SourceSelection, Variable
from .errors import ZeroCrossSectionError


def rank_sources(variable: Variable) -> List[RankedSource]:
    """Rank the non-reserved sources of *variable*, most significant first.

    Raises
    ------
    ZeroCrossSectionError
        If a bin carrying a ranked source has ``xsec == 0``.
    """
    scores: Dict[str, float] = {}
    for bin_index, b in enumerate(variable.bins):
        for name, value in b.sources.items():
            if name in EXCLUDED_SOURCES:
                continue
            if b.xsec == 0:
                raise ZeroCrossSectionError(variable.name, bin_index)
            scores[name] = scores.get(name, 0.0) + (value / b.xsec) ** 2

    ranked = [RankedSource(name, score) for name, score in scores.items()]
    ranked.sort(key=lambda r: (-r.score, r.name))
    return ranked


def select_sources(
    variable: Variable,
    max_selected: int = MAX_SELECTED_SOURCES,
) -> SourceSelection:
    """Split the ranked sources into ``selected`` and ``other``.

    Parameters
    ----------
    variable : Variable
        Variable whose bins are ranked.
    max_selected : int
        Upper bound on the number of individually shown sources.

    Returns
    -------
    SourceSelection
        ``selected`` holds ``min(max_selected, n)`` names in ascending
        significance (most significant last); ``other`` holds the rest
        in descending rank order.
    """
    if max_selected < 0:
        raise ValueError(f"max_selected must be non-negative, got {max_selected}")
    ranked = rank_sources(variable)
    n = min(max_selected, len(ranked))
    selected = [r.name for r in reversed(ranked[:n])]
    other = [r.name for r in ranked[n:]]
    return SourceSelection(selected=selected, other=other)
