import io

import numpy as np
import pytest
from matplotlib.figure import Figure

from hepuncert.bands import compute_variable_bands
from hepuncert.chart_uncert_band import (
    auto_y_range,
    choose_y_range,
    render_uncert_bands,
)
from hepuncert.constants import (
    CORR_Y_RANGES, PLAIN_BAND_LABELS, Y_AXIS_LABEL, Y_AXIS_LABEL_SM,
)
from hepuncert.data_model import Bin, Variable, VariableBands


def _plain(name="pT_yy", edges=(0.0, 20.0, 45.0, 46.0), scale=1.0) -> VariableBands:
    n = len(edges) - 1
    base = np.linspace(0.05, 0.1, n) * scale
    bands = np.vstack([base, base * 2, base * 3, base * 4])
    return VariableBands(
        name=name,
        edges=np.asarray(edges, dtype=float),
        bands=bands,
        labels=list(PLAIN_BAND_LABELS),
        mode="plain",
    )


@pytest.mark.parametrize("max_total, expected", [
    (0.3, 0.5),
    (0.4, 1.0),
    (1.0, 2.0),
    (20.0, 8.0),
    (0.0, 1.0),
    (float("nan"), 1.0),
])
def test_auto_y_range(max_total, expected) -> None:
    assert auto_y_range(max_total) == expected


def test_choose_y_range_uses_fixed_ranges_in_correlated_mode() -> None:
    name, fixed = next(iter(CORR_Y_RANGES.items()))
    vb = _plain(name=name)
    corr = VariableBands(vb.name, vb.edges, vb.bands, vb.labels, "corr")
    assert choose_y_range(corr) == fixed
    assert choose_y_range(vb) == auto_y_range(float(np.max(vb.total)))


def test_render_plain_bands() -> None:
    fig = Figure(figsize=(7, 5))
    render_uncert_bands(fig, _plain())
    ax = fig.axes[0]
    assert ax.get_ylim() == pytest.approx((-1.0, 1.0))
    assert ax.get_xlim() == pytest.approx((0.0, 46.0))
    assert ax.get_ylabel() == Y_AXIS_LABEL
    legend = [t.get_text() for t in ax.get_legend().get_texts()]
    assert legend == list(PLAIN_BAND_LABELS)


def test_render_is_repeatable_on_one_figure() -> None:
    fig = Figure()
    render_uncert_bands(fig, _plain())
    render_uncert_bands(fig, _plain(), reference_xsec=True, y_range=0.25)
    assert len(fig.axes) == 1
    ax = fig.axes[0]
    assert ax.get_ylabel() == Y_AXIS_LABEL_SM
    assert ax.get_ylim() == pytest.approx((-0.25, 0.25))


def test_jet_multiplicity_ticks() -> None:
    fig = Figure()
    render_uncert_bands(fig, _plain(name="N_j_30", edges=(0.0, 1.0, 2.0, 3.0, 4.0)))
    labels = [t.get_text() for t in fig.axes[0].get_xticklabels()]
    assert labels == ["= 0", "= 1", "= 2", r"$\geq$ 3"]


def test_empty_labels_are_not_drawn() -> None:
    fig = Figure()
    render_uncert_bands(fig, _plain(), experiment_label="", status_label="",
                        process_label="")
    assert len(fig.axes[0].texts) == 0


def _variable(name: str) -> Variable:
    bins = []
    for i, xsec in enumerate([4.0, 2.0, 1.0]):
        sources = {
            'lumi': 0.03 * xsec, 'fit': 0.05 * xsec, 'bkg_model_uncorr': 0.01 * xsec,
        }
        for k, size in enumerate([0.02, 0.04, 0.01, 0.03, 0.005, 0.015]):
            sources[f"sys{k}"] = size * xsec * (i + 1)
        bins.append(Bin(float(i), float(i + 1), xsec, 0.1 * xsec, sources,
                        open_ended=(i == 2)))
    return Variable(name, bins)


@pytest.mark.parametrize("corr", [False, True])
@pytest.mark.parametrize("name", ["pT_yy", "N_j_30", "fid_incl"])
def test_rendered_chart_saves_as_pdf(name, corr) -> None:
    fig = Figure()
    render_uncert_bands(fig, compute_variable_bands(_variable(name), corr=corr))
    buf = io.BytesIO()
    fig.savefig(buf, format="pdf")
    assert buf.getvalue().startswith(b"%PDF")
