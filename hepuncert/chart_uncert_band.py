"""
Nested uncertainty band chart for the HepData Uncertainty Band Plotter.

Draws the cumulative fractional uncertainty bands of one variable as
filled, symmetric step regions around zero:

    band i:  −b_i  …  +b_i   across each bin

Bands are nested (each contains all previous ones), so the total band
is drawn first and the narrower bands on top of it, widest to
narrowest, keeping every band visible.

Features:
- Outline at ±b_i for every band, styled per band
- Two-column legend inside the axes
- Automatic symmetric y range (power of two with headroom), or a fixed
  per-variable range in correlated mode
- Categorical "= k" / "≥ k" ticks for jet multiplicity variables
- Experiment / status / process labels
"""

import math
import warnings
from typing import Optional

import numpy as np
from matplotlib.figure import Figure

from .constants import (
    CORR_BAND_STYLES, CORR_Y_RANGES, DEFAULT_EXPERIMENT_LABEL,
    DEFAULT_PROCESS_LABEL, DEFAULT_STATUS_LABEL, FIDUCIAL_PREFIX,
    JET_MULTIPLICITY_PREFIX, MODE_CORR, PLAIN_BAND_STYLES, TEXT_COLOR,
    VARIABLE_LABELS, Y_AXIS_LABEL, Y_AXIS_LABEL_SM, Y_RANGE_CAP,
    Y_RANGE_HEADROOM,
)
from .data_model import VariableBands


def auto_y_range(max_total: float) -> float:
    """Symmetric y half-range for a total band reaching *max_total*.

    Rounds up to a power of two, caps at ``Y_RANGE_CAP``, and doubles
    when the band would fill more than ``Y_RANGE_HEADROOM`` of it.
    """
    if not np.isfinite(max_total) or max_total <= 0:
        return 1.0
    y_range = 2.0 ** math.ceil(math.log2(max_total))
    if y_range > Y_RANGE_CAP:
        y_range = Y_RANGE_CAP
    elif max_total / y_range > Y_RANGE_HEADROOM:
        y_range *= 2
    return y_range


def choose_y_range(var_bands: VariableBands) -> float:
    """Fixed range for known variables in correlated mode, else automatic."""
    auto = auto_y_range(float(np.max(var_bands.total)))
    if var_bands.mode == MODE_CORR:
        return CORR_Y_RANGES.get(var_bands.name, auto)
    return auto


def _band_styles(var_bands: VariableBands):
    palette = CORR_BAND_STYLES if var_bands.mode == MODE_CORR else PLAIN_BAND_STYLES
    n = var_bands.bands.shape[0]
    # More selected sources than palette entries: reuse from the start
    return [palette[i % len(palette)] for i in range(n)]


def _draw_band(ax, edges, values, style, label, zorder):
    fill, line, linestyle = style
    upper = np.append(values, values[-1])
    patch = ax.fill_between(
        edges, -upper, upper,
        step='post', facecolor=fill, edgecolor='none',
        linewidth=0.0,
        label=label, zorder=zorder,
    )
    ax.stairs(values, edges, color=line, linestyle=linestyle,
              linewidth=0.8, zorder=zorder + 0.5)
    ax.stairs(-values, edges, color=line, linestyle=linestyle,
              linewidth=0.8, zorder=zorder + 0.5)
    return patch


def _jet_multiplicity_ticks(ax, edges):
    n = len(edges) - 1
    centres = 0.5 * (edges[:-1] + edges[1:])
    labels = []
    for i in range(n):
        op = "=" if n - i > 1 else r"$\geq$"
        labels.append(f"{op} {math.ceil(edges[i]):d}")
    ax.set_xticks(centres)
    ax.set_xticklabels(labels, fontsize=12)
    ax.tick_params(axis='x', which='minor', bottom=False, top=False)


def render_uncert_bands(
    fig: Figure,
    var_bands: VariableBands,
    *,
    reference_xsec: bool = False,
    y_range: Optional[float] = None,
    experiment_label: str = DEFAULT_EXPERIMENT_LABEL,
    status_label: str = DEFAULT_STATUS_LABEL,
    process_label: str = DEFAULT_PROCESS_LABEL,
) -> None:
    """Render the nested bands of one variable on *fig*.

    Parameters
    ----------
    fig : matplotlib.figure.Figure
        Figure to draw on (will be cleared).
    var_bands : VariableBands
        Output of ``bands.compute_variable_bands``.
    reference_xsec : bool
        ``True`` when bands are relative to a reference cross section;
        changes the y-axis title.
    y_range : float or None
        Symmetric y half-range.  ``None`` picks it automatically.
    experiment_label, status_label, process_label : str
        Annotation text in the upper left; empty strings are skipped.
    """
    fig.clf()
    ax = fig.add_subplot(111)

    edges = np.asarray(var_bands.edges, dtype=float)
    bands = np.asarray(var_bands.bands, dtype=float)
    n_bands = bands.shape[0]

    if bands.size == 0:
        ax.text(0.5, 0.5, 'No bins',
                transform=ax.transAxes, ha='center', va='center')
        return

    styles = _band_styles(var_bands)

    # ── Total first, then narrower bands on top ────────────────────
    order = [n_bands - 1] + list(range(n_bands - 2, -1, -1))
    patches = [None] * n_bands
    for z, i in enumerate(order):
        patches[i] = _draw_band(ax, edges, bands[i], styles[i],
                                var_bands.labels[i], zorder=2 + z)

    ax.axhline(0, color=TEXT_COLOR, linewidth=0.6, zorder=2 + n_bands + 1)

    # ── Axes ───────────────────────────────────────────────────────
    half = y_range if y_range is not None else choose_y_range(var_bands)
    ax.set_ylim(-half, half)
    if edges[-1] > edges[0]:
        ax.set_xlim(edges[0], edges[-1])

    ax.set_xlabel(VARIABLE_LABELS.get(var_bands.name, var_bands.name),
                  fontsize=14)
    ax.set_ylabel(Y_AXIS_LABEL_SM if reference_xsec else Y_AXIS_LABEL,
                  fontsize=14)

    if var_bands.name.startswith(JET_MULTIPLICITY_PREFIX):
        _jet_multiplicity_ticks(ax, edges)
    elif var_bands.name.startswith(FIDUCIAL_PREFIX):
        ax.set_xticks([0.5 * (edges[0] + edges[1])])
        ax.set_xticklabels([''])

    ax.tick_params(axis='both', which='both', direction='in',
                   top=True, right=True, labelsize=11)

    # ── Legend in band order ───────────────────────────────────────
    ax.legend(
        patches, var_bands.labels,
        loc='lower left',
        ncol=2,
        fontsize=9,
        frameon=False,
    )

    # ── Annotations ────────────────────────────────────────────────
    if experiment_label:
        ax.text(0.03, 0.90, experiment_label, transform=ax.transAxes,
                ha='left', va='bottom', fontsize=13,
                fontweight='bold', fontstyle='italic', color=TEXT_COLOR)
    if status_label:
        ax.text(0.16, 0.90, status_label, transform=ax.transAxes,
                ha='left', va='bottom', fontsize=13, color=TEXT_COLOR)
    if process_label:
        ax.text(0.03, 0.96, process_label, transform=ax.transAxes,
                ha='left', va='bottom', fontsize=10, color=TEXT_COLOR)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        try:
            fig.tight_layout()
        except ValueError:
            pass
