"""
Mode table reader for cross-checking per-production-mode predictions.

Reads a key/value text file where every line holds one vector::

    # mode.variable.quantity: values
    ggF.pT_yy.bins: 0 20 45 80 350
    ggF.pT_yy.xsec: 9.1 7.7 4.2 1.3
    VBF.pT_yy.bins: 0 20 45 80 350
    VBF.pT_yy.xsec: 0.4 0.5 0.4 0.2

and checks it for consistency:

- every mode of a variable must carry identical ``bins``
- every variable must be defined for the same set of modes

Quantities can then be summed over modes, bin by bin.

Formatting problems and repeated keys are recoverable: the line is
skipped with a ``HepDataWarning``.  Consistency problems raise
``ModeTableError``.
"""

import logging
import math
import os
import warnings
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import HepDataWarning, ModeTableError

logger = logging.getLogger(__name__)

BINS_KEY = "bins"

# {variable: {mode: {quantity: values}}}
ModeData = Dict[str, Dict[str, Dict[str, List[float]]]]


def _split_key(line: str) -> Optional[Tuple[str, str, str, str]]:
    """Split ``mode.variable.quantity: values`` into its four parts."""
    d1 = line.find('.')
    if d1 <= 0:
        return None
    d2 = line.find('.', d1 + 1)
    if d2 < 0:
        return None
    col = line.find(':', d2 + 1)
    if col < 0:
        return None
    mode = line[:d1].strip()
    variable = line[d1 + 1:d2].strip()
    quantity = line[d2 + 1:col].strip()
    if not (mode and variable and quantity):
        return None
    return mode, variable, quantity, line[col + 1:]


def _parse_values(text: str, line_idx: int) -> List[float]:
    values: List[float] = []
    for token in text.split():
        try:
            value = float(token)
        except ValueError:
            value = math.nan
        if math.isfinite(value):
            values.append(value)
        else:
            warnings.warn(
                f"Line {line_idx}: invalid value {token!r}; "
                f"values truncated after {len(values)} entries.",
                HepDataWarning,
                stacklevel=3,
            )
            break
    return values


@dataclass(frozen=True)
class ModeTable:
    """Parsed mode table.

    Parameters
    ----------
    data : dict
        ``{variable: {mode: {quantity: values}}}`` in file order.
    source_file : str
        Path the table was read from.
    """
    data: ModeData
    source_file: str = ""

    @property
    def variables(self) -> List[str]:
        return list(self.data)

    def binning(self) -> Dict[str, List[float]]:
        """Return ``{variable: bins}`` after checking all modes agree.

        Raises
        ------
        ModeTableError
            If a mode has no ``bins`` or two modes disagree.
        """
        result: Dict[str, List[float]] = {}
        for var, modes in self.data.items():
            reference: Optional[List[float]] = None
            for mode, quantities in modes.items():
                bins = quantities.get(BINS_KEY)
                if bins is None:
                    raise ModeTableError(f"{mode}.{var} has no {BINS_KEY}")
                if reference is None:
                    reference = bins
                elif bins != reference:
                    raise ModeTableError(
                        f"Inconsistent binning at: {mode}.{var}.{BINS_KEY}"
                    )
            result[var] = list(reference) if reference is not None else []
        return result

    def modes(self) -> List[str]:
        """Return the sorted mode names after checking every variable has them all.

        Raises
        ------
        ModeTableError
            If two variables are defined for different modes.
        """
        first_var: Optional[str] = None
        reference: Optional[set] = None
        for var, modes in self.data.items():
            current = set(modes)
            if reference is None:
                first_var, reference = var, current
            elif current != reference:
                raise ModeTableError(
                    f"Inconsistent modes:\n"
                    f"  {first_var}: {' '.join(sorted(reference))}\n"
                    f"  {var}: {' '.join(sorted(current))}"
                )
        return sorted(reference) if reference else []

    def quantity_names(self) -> List[str]:
        """Sorted union of all quantity names."""
        names = set()
        for modes in self.data.values():
            for quantities in modes.values():
                names.update(quantities)
        return sorted(names)

    def sum_over_modes(
        self, quantities: Sequence[str],
    ) -> Dict[str, Dict[str, np.ndarray]]:
        """Sum each quantity over all modes, bin by bin.

        Returns
        -------
        dict
            ``{quantity: {variable: summed_values}}``.

        Raises
        ------
        ModeTableError
            If a mode lacks a requested quantity, or vector lengths differ.
        """
        sums: Dict[str, Dict[str, np.ndarray]] = {q: {} for q in quantities}
        for var, modes in self.data.items():
            for q in quantities:
                total: Optional[np.ndarray] = None
                for mode in sorted(modes):
                    values = modes[mode].get(q)
                    if values is None:
                        raise ModeTableError(f"{mode}.{var} has no value {q}")
                    arr = np.asarray(values, dtype=float)
                    if total is None:
                        total = arr.copy()
                    elif arr.shape != total.shape:
                        raise ModeTableError(
                            f"Unequal number of values for: {mode}.{var}.{q}"
                        )
                    else:
                        total += arr
                sums[q][var] = total if total is not None else np.zeros(0)
        return sums


def parse_mode_table(lines: Iterable[str], source_file: str = "") -> ModeTable:
    """Parse mode table lines into a ``ModeTable``."""
    data: ModeData = {}
    for line_idx, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue

        parts = _split_key(line)
        if parts is None:
            warnings.warn(
                f"Line {line_idx}: unexpected formatting: {line}",
                HepDataWarning,
                stacklevel=2,
            )
            continue
        mode, variable, quantity, value_text = parts

        quantities = data.setdefault(variable, {}).setdefault(mode, {})
        if quantity in quantities:
            warnings.warn(
                f"Line {line_idx}: duplicate entry for: "
                f"{mode}.{variable}.{quantity}",
                HepDataWarning,
                stacklevel=2,
            )
            continue
        quantities[quantity] = _parse_values(value_text, line_idx)

    return ModeTable(data=data, source_file=source_file)


def load_mode_table(filepath: str) -> ModeTable:
    """Read a mode table file."""
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"Mode table file not found: {filepath}")
    with open(filepath, 'r', encoding='utf-8-sig') as fh:
        table = parse_mode_table(fh, source_file=filepath)
    logger.info(
        "Read %d variables from %s", len(table.variables), os.path.basename(filepath),
    )
    return table
