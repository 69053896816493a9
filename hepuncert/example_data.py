"""
Example data generator for the HepData Uncertainty Band Plotter.

Creates a synthetic HepData file, a matching reference cross-section
table, and a per-production-mode cross-check table for testing and
demonstration.  The HepData file covers a continuous variable with an
open-ended last bin, a jet multiplicity with single-point bins, and a
one-bin fiducial region; one uncertainty source per bin is written as
an asymmetric ``lo,hi`` pair.
"""

import os
import random


# Correlated systematic sources with their typical relative size
_SYSTEMATICS = {
    'jes_pu_rho':    0.030,
    'gen_model':     0.045,
    'jes_flav_comp': 0.020,
    'JER':           0.025,
    'iso':           0.012,
    'pileup':        0.010,
    'trig':          0.008,
    'PID':           0.015,
    'PES':           0.006,
    'prw':           0.004,
}

# name -> (range tokens per bin, central cross sections)
_VARIABLES = {
    'pT_yy': (
        ['0 TO 20', '20 TO 45', '45 TO 80', '80 TO 120', '120 TO 350', '>=350'],
        [0.47, 0.42, 0.21, 0.078, 0.012, 0.0009],
    ),
    'N_j_30': (
        ['0', '1', '2', '>=3'],
        [30.1, 13.8, 5.2, 2.4],
    ),
    'fid_incl': (
        ['0 TO 1'],
        [55.5],
    ),
}

_MODES = ('ggF', 'VBF', 'VH', 'ttH')
_MODE_FRACTIONS = (0.87, 0.07, 0.04, 0.02)


def _fmt(x: float) -> str:
    return f"{x:.4g}"


def _bin_line(rng: random.Random, range_text: str, xsec: float) -> str:
    stat = xsec * rng.uniform(0.10, 0.35)
    entries = [
        f"DSYS={_fmt(xsec * 0.032)}:lumi",
        f"DSYS={_fmt(xsec * rng.uniform(0.02, 0.08))}:fit",
        f"DSYS={_fmt(xsec * rng.uniform(0.005, 0.03))}:bkg_model_uncorr",
    ]
    asymmetric = rng.choice(list(_SYSTEMATICS))
    for name, size in _SYSTEMATICS.items():
        value = xsec * size * rng.uniform(0.5, 1.5)
        if name == asymmetric:
            lo = -value * rng.uniform(0.6, 1.0)
            entries.append(f"DSYS={_fmt(lo)},{_fmt(value)}:{name}")
        else:
            entries.append(f"DSYS={_fmt(value)}:{name}")
    return f"{range_text};{_fmt(xsec)} +- {_fmt(stat)} ({','.join(entries)});"


def generate_example_files(output_dir: str) -> dict:
    """Generate example input files in *output_dir*.

    Returns
    -------
    dict
        ``{"hepdata": path, "xsec": path, "modes": path}``
    """
    os.makedirs(output_dir, exist_ok=True)

    # Reproducible randomness
    rng = random.Random(42)

    # ── HepData file ─────────────────────────────────────────────────
    lines = [
        "*author: EXAMPLE",
        "*reference: synthetic example data",
        "",
    ]
    for table_idx, (name, (ranges, xsecs)) in enumerate(_VARIABLES.items(), start=1):
        lines.append(f"*dataset: Table{table_idx}/{name}")
        lines.append(f"*location: Figure {table_idx}")
        lines.append("*dscomment: Fiducial differential cross section")
        lines.append(f"*xheader: {name}")
        lines.append("*yheader: d(sigma)/dx")
        lines.append("*data: x : y")
        for range_text, xsec in zip(ranges, xsecs):
            lines.append(_bin_line(rng, range_text, xsec))
        lines.append("*dataend:")
        lines.append("")

    hepdata_path = os.path.join(output_dir, 'example.hepdata')
    with open(hepdata_path, 'w', encoding='utf-8') as fh:
        fh.write('\n'.join(lines) + '\n')

    # ── Reference cross sections ─────────────────────────────────────
    xsec_path = os.path.join(output_dir, 'example_xsec_sm.txt')
    with open(xsec_path, 'w', encoding='utf-8') as fh:
        fh.write("# variable  reference cross section per bin\n")
        for name, (_, xsecs) in _VARIABLES.items():
            values = [_fmt(x * rng.uniform(0.85, 1.15)) for x in xsecs]
            fh.write(f"{name} {' '.join(values)}\n")

    # ── Per-mode cross-check table ───────────────────────────────────
    modes_path = os.path.join(output_dir, 'example_modes.txt')
    with open(modes_path, 'w', encoding='utf-8') as fh:
        fh.write("# mode.variable.quantity: values\n")
        for name, (ranges, xsecs) in _VARIABLES.items():
            edges = [r.replace('>=', '').split()[0] for r in ranges]
            for mode, fraction in zip(_MODES, _MODE_FRACTIONS):
                fh.write(f"{mode}.{name}.bins: {' '.join(edges)}\n")
                values = [_fmt(x * fraction) for x in xsecs]
                fh.write(f"{mode}.{name}.xsec: {' '.join(values)}\n")

    return {"hepdata": hepdata_path, "xsec": xsec_path, "modes": modes_path}


if __name__ == '__main__':
    # Quick test: generate to a temporary directory and print summary
    import tempfile
    out_dir = os.path.join(tempfile.gettempdir(), 'hepuncert_example')
    paths = generate_example_files(out_dir)
    for name, path in paths.items():
        size = os.path.getsize(path)
        print(f"  {name}: {path} ({size:,} bytes)")
