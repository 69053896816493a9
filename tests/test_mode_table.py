import numpy as np
import pytest

from hepuncert.errors import HepDataWarning, ModeTableError
from hepuncert.mode_table import load_mode_table, parse_mode_table


SAMPLE = """\
# mode.variable.quantity: values
ggF.pT.bins: 0 10 20
ggF.pT.xsec: 1 2
VBF.pT.bins: 0 10 20
VBF.pT.xsec: 0.5 0.25
ggF.Nj.bins: 0 1
ggF.Nj.xsec: 3
VBF.Nj.bins: 0 1
VBF.Nj.xsec: 1
"""


def test_binning_modes_and_quantities() -> None:
    table = parse_mode_table(SAMPLE.splitlines())
    assert table.variables == ["pT", "Nj"]
    assert table.binning() == {"pT": [0.0, 10.0, 20.0], "Nj": [0.0, 1.0]}
    assert table.modes() == ["VBF", "ggF"]
    assert table.quantity_names() == ["bins", "xsec"]


def test_sum_over_modes() -> None:
    table = parse_mode_table(SAMPLE.splitlines())
    sums = table.sum_over_modes(["xsec"])
    np.testing.assert_allclose(sums["xsec"]["pT"], [1.5, 2.25])
    np.testing.assert_allclose(sums["xsec"]["Nj"], [4.0])


def test_inconsistent_binning() -> None:
    table = parse_mode_table([
        "ggF.pT.bins: 0 10 20",
        "VBF.pT.bins: 0 10 30",
    ])
    with pytest.raises(ModeTableError, match="Inconsistent binning at: VBF.pT.bins"):
        table.binning()


def test_missing_bins() -> None:
    table = parse_mode_table(["ggF.pT.xsec: 1 2"])
    with pytest.raises(ModeTableError, match="has no bins"):
        table.binning()


def test_inconsistent_modes() -> None:
    table = parse_mode_table([
        "ggF.pT.bins: 0 1",
        "VBF.pT.bins: 0 1",
        "ggF.Nj.bins: 0 1",
    ])
    with pytest.raises(ModeTableError, match="Inconsistent modes"):
        table.modes()


def test_missing_quantity_and_unequal_lengths() -> None:
    table = parse_mode_table([
        "ggF.pT.xsec: 1 2",
        "VBF.pT.bins: 0 1",
    ])
    with pytest.raises(ModeTableError, match="VBF.pT has no value xsec"):
        table.sum_over_modes(["xsec"])

    table = parse_mode_table([
        "ggF.pT.xsec: 1 2",
        "VBF.pT.xsec: 1",
    ])
    with pytest.raises(ModeTableError, match="Unequal number of values"):
        table.sum_over_modes(["xsec"])


def test_bad_lines_are_warned_and_skipped() -> None:
    with pytest.warns(HepDataWarning) as record:
        table = parse_mode_table([
            "no key here",
            "ggF.pT.bins: 0 1",
            "ggF.pT.bins: 0 2",
        ])
    messages = [str(w.message) for w in record]
    assert any("Line 1: unexpected formatting" in m for m in messages)
    assert any("Line 3: duplicate entry for: ggF.pT.bins" in m for m in messages)
    assert table.binning() == {"pT": [0.0, 1.0]}


def test_load_mode_table(tmp_path) -> None:
    path = tmp_path / "modes.txt"
    path.write_text(SAMPLE, encoding="utf-8")
    table = load_mode_table(str(path))
    assert table.source_file == str(path)
    assert table.modes() == ["VBF", "ggF"]


def test_non_finite_value_truncates_vector() -> None:
    with pytest.warns(HepDataWarning, match="Line 1: invalid value 'nan'"):
        table = parse_mode_table(["ggF.pT.xsec: 1 nan 3"])
    assert table.data["pT"]["ggF"]["xsec"] == [1.0]
