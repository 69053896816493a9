import numpy as np
import pytest

from hepuncert.bands import (
    band_labels,
    compute_dataset_bands,
    compute_variable_bands,
    cumulative_quadrature,
    plain_vector,
    qadd,
    raw_band_matrix,
)
from hepuncert.constants import OTHERS_LABEL, PLAIN_BAND_LABELS
from hepuncert.data_model import Bin, Dataset, SourceSelection, Variable
from hepuncert.errors import (
    EmptyVariableError,
    HepDataWarning,
    MissingSourceError,
    ZeroCrossSectionError,
)


def _bin(xsec, stat=0.0, min_=0.0, max_=1.0, **sources) -> Bin:
    return Bin(min=min_, max=max_, xsec=xsec, stat=stat, sources=sources)


def test_qadd() -> None:
    assert qadd(3.0, 4.0) == pytest.approx(5.0)
    assert qadd() == 0.0


def test_plain_bands_single_bin() -> None:
    var = Variable("v", [
        _bin(10.0, stat=84.0, lumi=3.0, a=4.0, fit=12.0, bkg_model_uncorr=0.0),
    ])
    vb = compute_variable_bands(var)
    assert vb.mode == "plain"
    assert vb.labels == list(PLAIN_BAND_LABELS)
    np.testing.assert_allclose(vb.bands[:, 0], [0.3, 0.5, 1.3, 8.5])
    np.testing.assert_allclose(vb.total, [8.5])


def test_plain_vector_combines_fit_and_background() -> None:
    b = _bin(1.0, stat=2.0, lumi=1.0, fit=3.0, bkg_model_uncorr=4.0, x=-6.0, y=8.0)
    vec = plain_vector(b, "v", 0)
    assert vec == pytest.approx([1.0, 10.0, 5.0, 2.0])


def test_two_bins_are_normalised_per_bin() -> None:
    var = Variable("v", [
        _bin(10.0, min_=0.0, max_=1.0, lumi=1.0, a=2.0, fit=0.0, bkg_model_uncorr=0.0),
        _bin(20.0, min_=1.0, max_=2.0, lumi=2.0, a=4.0, fit=0.0, bkg_model_uncorr=0.0),
    ])
    vb = compute_variable_bands(var)
    assert vb.bands.shape == (4, 2)
    np.testing.assert_allclose(vb.edges, [0.0, 1.0, 2.0])
    np.testing.assert_allclose(vb.bands[0], [0.1, 0.1])
    np.testing.assert_allclose(vb.bands[1], [np.sqrt(0.05)] * 2)
    np.testing.assert_allclose(vb.total, [np.sqrt(0.05)] * 2)


def test_correlated_bands_keep_all_selected() -> None:
    var = Variable("v", [_bin(10.0, lumi=9.0, a=3.0, b=4.0, c=12.0)])
    vb = compute_variable_bands(var, corr=True)
    assert vb.selection.selected == ["a", "b", "c"]
    assert vb.selection.other == []
    np.testing.assert_allclose(vb.bands[:, 0], [0.3, 0.5, 1.3, 1.3])
    assert vb.labels[-1] == OTHERS_LABEL


def test_correlated_bands_merge_the_rest() -> None:
    var = Variable("v", [_bin(10.0, a=3.0, b=4.0, c=12.0)])
    vb = compute_variable_bands(var, corr=True, max_selected=1)
    assert vb.selection.selected == ["c"]
    assert vb.selection.other == ["b", "a"]
    np.testing.assert_allclose(vb.bands[:, 0], [1.2, 1.3])


def test_correlated_labels_prefix_all_but_first() -> None:
    labels = band_labels(SourceSelection(selected=["x", "y"], other=[]))
    assert labels[0] == "x"
    assert labels[1].endswith("y")
    assert labels[1] != "y"
    assert labels[2] == OTHERS_LABEL


def test_missing_required_source() -> None:
    var = Variable("v", [
        _bin(1.0, lumi=1.0, fit=1.0, bkg_model_uncorr=1.0),
        _bin(1.0, min_=2.5, lumi=1.0, fit=1.0),
    ])
    with pytest.raises(MissingSourceError) as exc_info:
        compute_variable_bands(var)
    err = exc_info.value
    assert isinstance(err, LookupError)
    assert err.key == "bkg_model_uncorr"
    assert err.bin_index == 1
    assert "bkg_model_uncorr" in str(err)


def test_missing_selected_source_in_correlated_mode() -> None:
    var = Variable("v", [_bin(1.0, a=1.0, b=1.0), _bin(1.0, a=1.0)])
    with pytest.raises(MissingSourceError):
        compute_variable_bands(var, corr=True)


def test_zero_cross_section() -> None:
    var = Variable("v", [_bin(0.0, lumi=1.0, fit=1.0, bkg_model_uncorr=1.0)])
    with pytest.raises(ZeroCrossSectionError):
        compute_variable_bands(var)


def test_empty_variable() -> None:
    with pytest.raises(EmptyVariableError):
        raw_band_matrix(Variable("v", []))
    with pytest.raises(EmptyVariableError):
        compute_variable_bands(Variable("v", []))


def test_cumulative_quadrature_properties() -> None:
    rng = np.random.default_rng(7)
    raw = rng.uniform(0.0, 2.0, size=(6, 5))
    cum = cumulative_quadrature(raw.copy())
    # non-decreasing along components, last is the full quadrature sum
    assert np.all(np.diff(cum, axis=1) >= -1e-12)
    np.testing.assert_allclose(cum[:, -1], np.sqrt((raw ** 2).sum(axis=1)))
    np.testing.assert_allclose(cum[:, 0], raw[:, 0])


def test_bands_are_nested_and_non_negative() -> None:
    var = Variable("v", [
        _bin(x, stat=0.2 * x, min_=i, max_=i + 1,
             lumi=0.03 * x, fit=-0.05 * x, bkg_model_uncorr=0.01 * x, s=0.1 * x)
        for i, x in enumerate([5.0, 2.0, 0.5])
    ])
    vb = compute_variable_bands(var)
    assert np.all(vb.bands >= 0)
    assert np.all(np.diff(vb.bands, axis=0) >= -1e-12)


def test_dataset_bands_skip_empty_variables() -> None:
    dataset = Dataset({
        "empty": Variable("empty", []),
        "full": Variable("full", [_bin(1.0, lumi=1.0, fit=1.0, bkg_model_uncorr=1.0)]),
    })
    with pytest.warns(HepDataWarning, match="empty"):
        result = compute_dataset_bands(dataset)
    assert list(result) == ["full"]
