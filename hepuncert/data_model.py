"""
Data model for the HepData Uncertainty Band Plotter.

Immutable dataclasses representing a parsed HepData file and the
values derived from it.  The ``Dataset`` is constructed once by
``hepdata_parser`` and never mutated; the selector, the band
aggregator and the chart renderers receive it read-only.  The
cross-section override returns a new ``Dataset`` instead of editing
the parsed one.

Each input line is classified exactly once into one of four records:
``HeaderRecord``, ``BinRecord``, ``Skip`` or ``ParseFailure``.  Every
record carries its own 1-based ``line_number``.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np


@dataclass(frozen=True)
class Bin:
    """One measurement interval of a variable.

    Parameters
    ----------
    min, max : float
        Bin bounds.  ``max == min`` for a single-point bin; for an
        open-ended ``>=`` bin ``max`` is ``min + OPEN_ENDED_BIN_WIDTH``.
    xsec : float
        Measured central cross section.
    stat : float
        Statistical uncertainty.
    sources : dict
        ``{source_name: magnitude}``, one entry per uncertainty source.
    open_ended : bool
        ``True`` when the bin was written as ``>=min``.
    """
    min: float
    max: float
    xsec: float
    stat: float
    sources: Dict[str, float] = field(default_factory=dict)
    open_ended: bool = False


@dataclass(frozen=True)
class Variable:
    """One measured observable with its bins in file order."""
    name: str
    bins: List[Bin] = field(default_factory=list)

    @property
    def edges(self) -> List[float]:
        """All bin lower edges followed by the last bin's upper edge."""
        if not self.bins:
            return []
        return [b.min for b in self.bins] + [self.bins[-1].max]


@dataclass(frozen=True)
class Dataset:
    """Complete parsed HepData file.

    Parameters
    ----------
    variables : dict
        ``{name: Variable}`` in the order the variables were found.
    source_file : str
        Path of the file the dataset was read from (``""`` when parsed
        from memory).
    """
    variables: Dict[str, Variable]
    source_file: str = ""

    def __getitem__(self, name: str) -> Variable:
        return self.variables[name]

    def __contains__(self, name: str) -> bool:
        return name in self.variables

    def __len__(self) -> int:
        return len(self.variables)

    @property
    def names(self) -> List[str]:
        return list(self.variables)


# ── Line records ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HeaderRecord:
    """``*dataset:`` line opening a new variable."""
    name: str
    line_number: int


@dataclass(frozen=True)
class BinRecord:
    """Data line inside a variable block."""
    bin: Bin
    line_number: int


@dataclass(frozen=True)
class Skip:
    """Blank line, ``*`` marker line, or stray line outside a block."""
    line_number: int
    blank: bool = False


@dataclass(frozen=True)
class ParseFailure:
    """Grammar violation found while classifying a line."""
    reason: str
    line_number: int


LineRecord = Union[HeaderRecord, BinRecord, Skip, ParseFailure]


# ── Derived values ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class RankedSource:
    """Source name with its summed squared relative magnitude."""
    name: str
    score: float


@dataclass(frozen=True)
class SourceSelection:
    """Partition of a variable's rankable sources.

    ``selected`` is ordered by ascending significance, so the most
    significant source is last.  ``other`` holds the remaining names in
    descending rank order.
    """
    selected: List[str]
    other: List[str]


@dataclass(frozen=True, eq=False)
class VariableBands:
    """Cumulative fractional uncertainty bands for one variable.

    Parameters
    ----------
    name : str
        Variable name.
    edges : numpy.ndarray
        Bin edges, length ``n_bins + 1``.
    bands : numpy.ndarray
        Shape ``(n_components, n_bins)``.  Row ``i`` is the i-th
        cumulative component; every row contains all previous ones
        combined in quadrature, so the last row is the total.
    labels : list of str
        Legend label for each component.
    mode : str
        ``"plain"`` or ``"corr"``.
    selection : SourceSelection or None
        Source partition used in correlated mode.
    """
    name: str
    edges: np.ndarray
    bands: np.ndarray
    labels: List[str]
    mode: str
    selection: Optional[SourceSelection] = None

    @property
    def n_bins(self) -> int:
        return self.bands.shape[1]

    @property
    def total(self) -> np.ndarray:
        """Outermost band (all components combined)."""
        return self.bands[-1]
