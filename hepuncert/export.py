"""
Export utilities for the HepData Uncertainty Band Plotter.

Handles chart export (one multi-page PDF "book", or one file per
variable in burst mode, or single PNGs) and the numeric band outputs:
a plain-text band table and a JSON dump of the per-variable
``{name, edges, bands}`` deliverable.
"""

import json
import logging
import os
from typing import Dict, Iterable, List, TextIO, Tuple

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure

from .constants import (
    BOOK_STEM, CORR_SUFFIX, EXPORT_DPI, EXPORT_WIDTH_INCHES,
)
from .data_model import VariableBands

logger = logging.getLogger(__name__)


def output_stem(name: str, corr: bool) -> str:
    """File stem for *name*, with ``_corr`` appended in correlated mode."""
    safe_name = "".join(
        c if c.isalnum() or c in '-_.' else '_'
        for c in name
    )
    return safe_name + (CORR_SUFFIX if corr else "")


def export_png(
    fig: Figure,
    filepath: str,
    *,
    dpi: int = EXPORT_DPI,
    width_inches: float = EXPORT_WIDTH_INCHES,
) -> None:
    """Export figure as PNG at a fixed width.

    The figure size is restored afterwards, even on error.
    """
    current_w = fig.get_figwidth()
    current_h = fig.get_figheight()
    try:
        scale = width_inches / current_w if current_w > 0 else 1.0
        fig.set_size_inches(width_inches, current_h * scale)
        fig.savefig(
            filepath,
            dpi=dpi,
            bbox_inches='tight',
            facecolor='white',
            edgecolor='none',
            pad_inches=0.1,
        )
    finally:
        fig.set_size_inches(current_w, current_h)


def export_pdf_book(
    pages: Iterable[Tuple[str, Figure]],
    filepath: str,
) -> int:
    """Write every figure of *pages* as one page of a single PDF.

    Parameters
    ----------
    pages : iterable of (name, Figure)
        Figures in page order.  Each figure is saved as soon as it is
        yielded, so a generator may reuse one ``Figure``.
    filepath : str
        Output PDF path.

    Returns
    -------
    int
        Number of pages written.
    """
    n_pages = 0
    with PdfPages(filepath) as pdf:
        for name, fig in pages:
            pdf.savefig(fig)
            n_pages += 1
            logger.debug("Added page %d: %s", n_pages, name)
    logger.info("Wrote %s (%d pages)", filepath, n_pages)
    return n_pages


def book_path(output_dir: str, corr: bool) -> str:
    """Path of the multi-page PDF: ``uncert.pdf`` or ``uncert_corr.pdf``."""
    return os.path.join(output_dir, output_stem(BOOK_STEM, corr) + ".pdf")


def export_burst(
    pages: Iterable[Tuple[str, Figure]],
    output_dir: str,
    corr: bool,
    *,
    fmt: str = "pdf",
    dpi: int = EXPORT_DPI,
) -> List[str]:
    """Write each figure to its own ``<name>[_corr].<fmt>`` file.

    Returns
    -------
    list of str
        Paths of exported files.
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    for name, fig in pages:
        filepath = os.path.join(output_dir, f"{output_stem(name, corr)}.{fmt}")
        if fmt == "png":
            export_png(fig, filepath, dpi=dpi)
        else:
            fig.savefig(filepath, format=fmt)
        logger.info("Wrote %s", filepath)
        paths.append(filepath)
    return paths


# ── Numeric outputs ──────────────────────────────────────────────────────

def write_band_table(stream: TextIO, bands: Iterable[VariableBands]) -> None:
    """Write bands as a whitespace-separated text table.

    Per variable::

        var <name>
        <min_0> <total_0> … <innermost_0>
        …
        <max> 0 … 0
        <blank line>

    Bands are listed from the outermost (total) to the innermost.
    """
    for vb in bands:
        stream.write(f"var {vb.name}\n")
        outer_first = vb.bands[::-1]
        for i in range(vb.n_bins):
            row = [repr(float(vb.edges[i]))]
            row.extend(repr(float(x)) for x in outer_first[:, i])
            stream.write(" ".join(row) + "\n")
        closing = [repr(float(vb.edges[-1]))] + ["0"] * vb.bands.shape[0]
        stream.write(" ".join(closing) + "\n\n")


def bands_to_dict(vb: VariableBands) -> Dict:
    """JSON-ready ``{name, mode, edges, labels, bands[, selected, other]}``."""
    out = {
        'name': vb.name,
        'mode': vb.mode,
        'edges': vb.edges.tolist(),
        'labels': list(vb.labels),
        'bands': vb.bands.tolist(),
    }
    if vb.selection is not None:
        out['selected'] = list(vb.selection.selected)
        out['other'] = list(vb.selection.other)
    return out


def write_bands_json(filepath: str, bands: Iterable[VariableBands]) -> None:
    """Dump all variables' bands to *filepath* as a JSON list."""
    payload = [bands_to_dict(vb) for vb in bands]
    with open(filepath, 'w', encoding='utf-8') as fh:
        json.dump(payload, fh, indent=2)
        fh.write('\n')
    logger.info("Wrote %s (%d variables)", filepath, len(payload))
