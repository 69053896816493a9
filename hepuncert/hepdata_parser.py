"""
HepData parser for the HepData Uncertainty Band Plotter.

Reads a HepData-style text file and assembles it into a ``Dataset``.
Parsing happens in two steps:

- ``classify_line`` turns one raw line into exactly one record
  (``HeaderRecord``, ``BinRecord``, ``Skip`` or ``ParseFailure``).
- ``DatasetBuilder`` consumes the records in order, opening a variable
  on each ``*dataset:`` header, appending bins, and closing the block
  on the first blank or ``*`` line that follows a bin.

A bin line looks like::

    10 TO 20;1.0 +- 0.1(DSYS=0.2:lumi,DSYS=-0.1,0.3:jes);

Handles:

- Single-point bins (``min`` only) and open-ended ``>=min`` bins
- Asymmetric ``DSYS=lo,hi`` entries (stored as ``max(|lo|, |hi|)``)
- Pre-amble ``*`` lines between a header and its first bin
- Repeated variable headers (warned, first declaration kept)
"""

import logging
import math
import os
import warnings
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import (
    DATASET_PREFIX, MARKER_PREFIX, OPEN_ENDED_BIN_WIDTH, OPEN_ENDED_PREFIX,
    PLUS_MINUS, RANGE_KEYWORD, SOURCE_KEYWORD,
)
from .data_model import (
    Bin, BinRecord, Dataset, HeaderRecord, LineRecord, ParseFailure, Skip,
    Variable,
)
from .errors import HepDataParseError, HepDataWarning

logger = logging.getLogger(__name__)


# ── Number parsing ───────────────────────────────────────────────────────

def _to_float(text: str, reason: str, line_number: int) -> float:
    try:
        value = float(text)
    except ValueError:
        raise HepDataParseError(f"{reason}: {text.strip()!r}", line_number) from None
    # nan / inf are not valid measurement data
    if not math.isfinite(value):
        raise HepDataParseError(
            f"{reason}: non-finite value {text.strip()!r}", line_number,
        )
    return value


# ── Bin grammar ──────────────────────────────────────────────────────────

def _parse_range(text: str, line_number: int) -> Tuple[float, float, bool]:
    """Parse ``min``, ``min TO max`` or ``>=min``."""
    text = text.strip()
    open_ended = text.startswith(OPEN_ENDED_PREFIX)
    if open_ended:
        text = text[len(OPEN_ENDED_PREFIX):]

    tokens = text.split()
    if not tokens:
        raise HepDataParseError("invalid bin range: empty", line_number)
    bin_min = _to_float(tokens[0], "invalid bin range", line_number)

    if open_ended:
        return bin_min, bin_min + OPEN_ENDED_BIN_WIDTH, True

    if len(tokens) > 1 and tokens[1] == RANGE_KEYWORD:
        if len(tokens) < 3:
            raise HepDataParseError(
                f"missing upper edge after {RANGE_KEYWORD} in bin line",
                line_number,
            )
        return bin_min, _to_float(tokens[2], "invalid bin range", line_number), False

    return bin_min, bin_min, False


def _parse_xsec(text: str, line_number: int) -> Tuple[float, float]:
    """Parse ``xsec +- stat``."""
    tokens = text.split()
    if len(tokens) < 2 or tokens[1] != PLUS_MINUS:
        raise HepDataParseError("missing +- in bin line", line_number)
    if len(tokens) < 3:
        raise HepDataParseError(
            "invalid cross section in bin line: no statistical uncertainty",
            line_number,
        )
    xsec = _to_float(tokens[0], "invalid cross section in bin line", line_number)
    stat = _to_float(tokens[2], "invalid cross section in bin line", line_number)
    return xsec, stat


def _parse_source_value(text: str, line_number: int) -> float:
    """One value as given, or the larger magnitude of ``lo,hi``."""
    if ',' in text:
        lo, hi = text.split(',', 1)
        return max(
            abs(_to_float(lo, "invalid uncertainty value", line_number)),
            abs(_to_float(hi, "invalid uncertainty value", line_number)),
        )
    return _to_float(text, "invalid uncertainty value", line_number)


def _parse_sources(line: str, start: int, line_number: int) -> Dict[str, float]:
    """Parse ``DSYS=…:name`` entries from *start* to ``;`` or end of line."""
    sources: Dict[str, float] = {}
    n = len(line)
    i = start
    while True:
        while i < n and line[i].isspace():
            i += 1
        if i >= n or line[i] == ';':
            break
        if not line.startswith(SOURCE_KEYWORD, i):
            raise HepDataParseError("missing DSYS in bin line", line_number)

        eq = line.find('=', i)
        col = line.find(':', eq + 1) if eq >= 0 else -1
        if col < 0:
            raise HepDataParseError("malformed DSYS entry in bin line", line_number)
        end = line.find(',', col + 1)
        if end < 0:
            end = line.find(')', col + 1)
        if end < 0:
            raise HepDataParseError(
                "malformed DSYS entry in bin line: no ',' or ')' after name",
                line_number,
            )

        name = line[col + 1:end].strip()
        if not name:
            raise HepDataParseError(
                "malformed DSYS entry in bin line: empty source name",
                line_number,
            )
        value = _parse_source_value(line[eq + 1:col], line_number)
        if name in sources:
            raise HepDataParseError(
                f"duplicate uncert source '{name}' on line {line_number}",
                line_number,
            )
        sources[name] = value
        i = end + 1
    return sources


def parse_bin_line(line: str, line_number: int = 0) -> Bin:
    """Parse one bin line into a ``Bin``.

    Parameters
    ----------
    line : str
        Bin line without its trailing newline.
    line_number : int
        1-based line number, used in error messages.

    Returns
    -------
    Bin

    Raises
    ------
    HepDataParseError
        If the line violates the bin grammar or repeats a source name.
    """
    d1 = line.find(';')
    if d1 < 0:
        raise HepDataParseError("missing ; in bin line", line_number)
    bin_min, bin_max, open_ended = _parse_range(line[:d1], line_number)

    d2 = line.find('(', d1 + 1)
    if d2 < 0:
        raise HepDataParseError("missing ( in bin line", line_number)
    xsec, stat = _parse_xsec(line[d1 + 1:d2], line_number)

    sources = _parse_sources(line, d2 + 1, line_number)

    return Bin(
        min=bin_min,
        max=bin_max,
        xsec=xsec,
        stat=stat,
        sources=sources,
        open_ended=open_ended,
    )


# ── Line classification ──────────────────────────────────────────────────

def _variable_name(line: str) -> str:
    """Text after the last ``/``, or after ``*dataset:`` if there is none."""
    slash = line.rfind('/')
    if slash >= 0:
        return line[slash + 1:].strip()
    return line[len(DATASET_PREFIX):].strip()


def classify_line(line: str, line_number: int, inside: bool) -> LineRecord:
    """Classify one line of a HepData file.

    Parameters
    ----------
    line : str
        Raw line without its trailing newline.
    line_number : int
        1-based line number.
    inside : bool
        Whether a variable block is currently open.  Data lines are
        only parsed as bins inside a block; outside they are ignored.

    Returns
    -------
    HeaderRecord, BinRecord, Skip or ParseFailure
    """
    if line.startswith(DATASET_PREFIX):
        name = _variable_name(line)
        if not name:
            return ParseFailure("empty variable name in dataset header", line_number)
        return HeaderRecord(name, line_number)
    if line.startswith(MARKER_PREFIX):
        return Skip(line_number)
    if not line.strip():
        return Skip(line_number, blank=True)
    if not inside:
        return Skip(line_number)
    try:
        return BinRecord(parse_bin_line(line, line_number), line_number)
    except HepDataParseError as exc:
        return ParseFailure(exc.reason, line_number)


# ── Dataset assembly ─────────────────────────────────────────────────────

class DatasetBuilder:
    """Group classified records into variables.

    Two states: outside any block, or inside the block of one variable.
    A repeated ``*dataset:`` name is warned about and its block is not
    opened, so the first declaration is kept intact.
    """

    def __init__(self, source_file: str = ""):
        self.source_file = source_file
        self._variables: Dict[str, Variable] = {}
        self._current: Optional[Variable] = None

    @property
    def inside(self) -> bool:
        return self._current is not None

    def feed(self, record: LineRecord) -> None:
        """Advance the state machine by one record.

        Raises
        ------
        HepDataParseError
            On a ``ParseFailure`` record, or a bin outside any block.
        """
        if isinstance(record, ParseFailure):
            raise HepDataParseError(record.reason, record.line_number)

        if isinstance(record, HeaderRecord):
            if self._current is not None:
                self._close("next header", record.line_number)
            self._open(record)
        elif isinstance(record, BinRecord):
            if self._current is None:
                raise HepDataParseError(
                    "bin line outside a dataset block", record.line_number,
                )
            self._current.bins.append(record.bin)
        elif isinstance(record, Skip):
            # Leading '*' and blank lines are pre-amble; after a bin they end the block
            if self._current is not None and self._current.bins:
                self._close(
                    "blank line" if record.blank else "marker line",
                    record.line_number,
                )

    def finish(self) -> Dataset:
        """Close any open block and return the assembled ``Dataset``."""
        if self._current is not None:
            self._close("end of input")
        return Dataset(variables=dict(self._variables), source_file=self.source_file)

    def _open(self, record: HeaderRecord) -> None:
        if record.name in self._variables:
            warnings.warn(
                f"repeated variable: {record.name} (line {record.line_number})",
                HepDataWarning,
                stacklevel=3,
            )
            return
        self._current = Variable(record.name, [])
        self._variables[record.name] = self._current

    def _close(self, cause: str, line_number: Optional[int] = None) -> None:
        where = f" (line {line_number})" if line_number is not None else ""
        logger.debug(
            "Closed variable %s with %d bins at %s%s",
            self._current.name, len(self._current.bins), cause, where,
        )
        self._current = None


def parse_hepdata_lines(lines: Iterable[str], source_file: str = "") -> Dataset:
    """Parse an iterable of HepData lines into a ``Dataset``.

    Trailing ``\\n`` / ``\\r\\n`` are stripped from each line; lines are
    numbered from 1.

    Raises
    ------
    HepDataParseError
        On the first grammar violation.
    """
    builder = DatasetBuilder(source_file)
    for line_number, raw_line in enumerate(lines, start=1):
        line = raw_line.rstrip('\n\r')
        builder.feed(classify_line(line, line_number, builder.inside))
    return builder.finish()


def parse_hepdata_text(text: str, source_file: str = "") -> Dataset:
    """Parse HepData content held in a string."""
    # Only '\n' separates lines, as when reading the file
    return parse_hepdata_lines(text.split('\n'), source_file)


def load_hepdata(filepath: str) -> Dataset:
    """Load a HepData file into a ``Dataset``.

    Parameters
    ----------
    filepath : str
        Path to the HepData text file.

    Returns
    -------
    Dataset

    Raises
    ------
    FileNotFoundError
        If *filepath* does not exist.
    HepDataParseError
        On the first grammar violation.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(f"HepData file not found: {filepath}")

    file_size = os.path.getsize(filepath)
    if file_size > 100 * 1024 * 1024:
        warnings.warn(
            f"File is very large ({file_size / (1024 * 1024):.0f} MB).",
            HepDataWarning,
            stacklevel=2,
        )

    with open(filepath, 'r', encoding='utf-8-sig') as fh:
        dataset = parse_hepdata_lines(fh, source_file=filepath)

    logger.info(
        "Read %d variables from %s", len(dataset), os.path.basename(filepath),
    )
    return dataset


def variable_summary(dataset: Dataset) -> List[str]:
    """One ``name: n bins, m sources`` line per variable."""
    lines = []
    for var in dataset.variables.values():
        names = set()
        for b in var.bins:
            names.update(b.sources)
        lines.append(f"{var.name}: {len(var.bins)} bins, {len(names)} sources")
    return lines
