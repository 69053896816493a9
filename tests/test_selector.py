import pytest

from hepuncert.data_model import Bin, Variable
from hepuncert.errors import ZeroCrossSectionError
from hepuncert.selector import rank_sources, select_sources


def _bin(xsec: float, **sources: float) -> Bin:
    base = {'lumi': 0.1, 'fit': 0.1, 'bkg_model_uncorr': 0.1}
    base.update(sources)
    return Bin(min=0.0, max=1.0, xsec=xsec, stat=0.1, sources=base)


def test_reserved_sources_are_not_ranked() -> None:
    var = Variable("v", [_bin(10.0, a=1.0)])
    assert [r.name for r in rank_sources(var)] == ["a"]


def test_top_four_in_ascending_significance() -> None:
    var = Variable("v", [_bin(10.0, a=5.0, b=4.0, c=3.0, d=2.0, e=1.0)])
    selection = select_sources(var)
    assert selection.selected == ["d", "c", "b", "a"]
    assert selection.other == ["e"]


def test_equal_scores_are_ordered_by_name() -> None:
    var = Variable("v", [_bin(1.0, beta=1.0, alpha=1.0)])
    selection = select_sources(var, max_selected=1)
    assert selection.selected == ["alpha"]
    assert selection.other == ["beta"]


def test_score_sums_relative_squares_over_bins() -> None:
    var = Variable("v", [
        _bin(10.0, a=1.0, b=2.0),
        _bin(2.0, a=1.0),
    ])
    ranked = rank_sources(var)
    # a: 0.01 + 0.25, b: 0.04 (absent in second bin)
    assert [r.name for r in ranked] == ["a", "b"]
    assert ranked[0].score == pytest.approx(0.26)
    assert ranked[1].score == pytest.approx(0.04)


def test_fewer_sources_than_limit() -> None:
    var = Variable("v", [_bin(1.0, a=1.0, b=2.0)])
    selection = select_sources(var, max_selected=4)
    assert selection.selected == ["a", "b"]
    assert selection.other == []


def test_selection_partitions_ranked_sources() -> None:
    var = Variable("v", [_bin(3.0, **{f"s{i}": float(i) for i in range(1, 9)})])
    selection = select_sources(var, max_selected=3)
    names = selection.selected + selection.other
    assert sorted(names) == sorted(f"s{i}" for i in range(1, 9))
    assert len(set(names)) == len(names)
    assert len(selection.selected) == 3


def test_zero_limit_selects_nothing() -> None:
    var = Variable("v", [_bin(1.0, a=1.0, b=2.0)])
    selection = select_sources(var, max_selected=0)
    assert selection.selected == []
    assert selection.other == ["b", "a"]


def test_negative_limit_is_rejected() -> None:
    var = Variable("v", [_bin(1.0, a=1.0)])
    with pytest.raises(ValueError):
        select_sources(var, max_selected=-1)


def test_zero_cross_section_is_fatal() -> None:
    var = Variable("v", [_bin(1.0, a=1.0), _bin(0.0, a=1.0)])
    with pytest.raises(ZeroCrossSectionError) as exc_info:
        rank_sources(var)
    assert exc_info.value.bin_index == 1
