"""
Error taxonomy for the HepData Uncertainty Band Plotter.

Fatal data problems are ``ValueError`` subclasses so callers can catch
them the same way as any other bad-input error.  Recoverable problems
are reported with ``warnings.warn(..., HepDataWarning)`` and never
abort a run.
"""

from typing import Optional


class HepDataWarning(UserWarning):
    """Recoverable input problem (repeated variable, duplicate row, …)."""


class HepDataError(ValueError):
    """Base class of all fatal input and aggregation errors."""


class HepDataParseError(HepDataError):
    """Grammar violation in a HepData file.

    Parameters
    ----------
    reason : str
        What is wrong with the line.
    line_number : int
        1-based line number in the input file.
    """

    def __init__(self, reason: str, line_number: Optional[int] = None):
        self.reason = reason
        self.line_number = line_number
        message = reason
        if line_number is not None and not reason.endswith(f"line {line_number}"):
            message = f"{reason} (line {line_number})"
        super().__init__(message)


class MissingSourceError(HepDataError, LookupError):
    """A required uncertainty source is absent from a bin."""

    def __init__(self, key: str, variable: str, bin_index: int,
                 bin_min: Optional[float] = None):
        self.key = key
        self.variable = variable
        self.bin_index = bin_index
        self.bin_min = bin_min
        where = f"bin {bin_index}"
        if bin_min is not None:
            where += f" (min = {bin_min:g})"
        super().__init__(
            f"Variable '{variable}' {where} has no uncertainty "
            f"source '{key}'"
        )


class ZeroCrossSectionError(HepDataError):
    """A bin with a zero cross section was used as a divisor."""

    def __init__(self, variable: str, bin_index: int):
        self.variable = variable
        self.bin_index = bin_index
        super().__init__(
            f"Variable '{variable}' bin {bin_index} has a zero cross "
            f"section; relative uncertainties are undefined."
        )


class EmptyVariableError(HepDataError):
    """Bands were requested for a variable without bins."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Variable '{variable}' has no bins")


class XsecMergeError(HepDataError):
    """Reference cross-section table does not match the dataset."""


class ModeTableError(HepDataError):
    """Inconsistent mode / variable / quantity cross-check table."""
