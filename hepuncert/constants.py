"""
Constants for the HepData Uncertainty Band Plotter.

Centralises the reserved uncertainty-source names, band palettes,
legend and axis labels, y-range rules and export settings.
"""

# ── HepData line grammar ─────────────────────────────────────────────────
DATASET_PREFIX = "*dataset:"
MARKER_PREFIX = "*"
OPEN_ENDED_PREFIX = ">="
RANGE_KEYWORD = "TO"
PLUS_MINUS = "+-"
SOURCE_KEYWORD = "DSYS"

# Width given to an open-ended ``>=`` bin (max = min + width)
OPEN_ENDED_BIN_WIDTH = 1.0

# ── Reserved uncertainty sources ─────────────────────────────────────────
SOURCE_LUMI = "lumi"
SOURCE_FIT = "fit"
SOURCE_BKG_MODEL_UNCORR = "bkg_model_uncorr"

# Never ranked in correlated mode; grouped explicitly in plain mode
EXCLUDED_SOURCES = (SOURCE_LUMI, SOURCE_FIT, SOURCE_BKG_MODEL_UNCORR)

# Number of individually shown sources in correlated mode
MAX_SELECTED_SOURCES = 4

MODE_PLAIN = "plain"
MODE_CORR = "corr"

# ── Legend labels ────────────────────────────────────────────────────────
OPLUS = "⊕"

PLAIN_BAND_LABELS = [
    "Luminosity",
    f"{OPLUS} Correction factor",
    f"{OPLUS} Signal extraction",
    f"{OPLUS} Statistics",
]

OTHERS_LABEL = f"{OPLUS} Others"

CORR_SOURCE_LABELS = {
    'jes_pu_rho':    "Jet pileup suppression",
    'gen_model':     "Theoretical modelling",
    'jes_flav_comp': "Jet flavour dependence",
    'JER':           "Jet energy resolution",
    'iso':           "Isolation",
    'pileup':        "Pileup",
    'trig':          "Trigger",
    'PID':           "Photon identification",
    'prw':           "Pileup modelling",
    'PES':           "Photon energy scale",
}

# ── Band palettes: (fill colour, line colour, line style) ────────────────
PLAIN_BAND_STYLES = [
    ('#3a5f8a', '#000000', '-'),
    ('#66c2e8', '#000000', ':'),
    ('#1f3a5c', '#000000', '--'),
    ('#d4d4d4', '#000000', '-'),
]

CORR_BAND_STYLES = [
    ('#e8551a', '#000000', '-'),
    ('#b35a1f', '#000000', '--'),
    ('#f08a3c', '#000000', '-'),
    ('#f5b971', '#000000', '--'),
    ('#fbe3c2', '#000000', '-'),
]

# ── Axis titles (matplotlib mathtext) ────────────────────────────────────
VARIABLE_LABELS = {
    'N_j_30':             r"$N_{\mathrm{jets}}$",
    'N_j_50':             r"$N_{\mathrm{jets}}^{\geq 50\ \mathrm{GeV}}$",
    'pT_yy':              r"$p_{T}^{\gamma\gamma}$ [GeV]",
    'pTt_yy':             r"$p_{Tt}^{\gamma\gamma}$ [GeV]",
    'pT_yyjj_30':         r"$p_{T}^{\gamma\gamma jj}$ [GeV]",
    'HT_30':              r"$H_{T}$ [GeV]",
    'yAbs_yy':            r"$|y_{\gamma\gamma}|$",
    'yAbs_j1_30':         r"$|y_{j1}|$",
    'yAbs_j2_30':         r"$|y_{j2}|$",
    'Dphi_j_j_30':        r"$|\Delta\phi_{jj}|$",
    'Dphi_j_j_30_signed': r"$\Delta\phi_{jj}$",
    'Dphi_yy_jj_30':      r"$|\Delta\phi_{\gamma\gamma,jj}|$",
    'pT_j1_30':           r"$p_{T}^{j1}$ [GeV]",
    'pT_j2_30':           r"$p_{T}^{j2}$ [GeV]",
    'cosTS_yy':           r"$|\cos\theta^{*}|$",
    'm_jj_30':            r"$m_{jj}$ [GeV]",
    'Dy_j_j_30':          r"$|\Delta y_{jj}|$",
    'Dy_y_y':             r"$|\Delta y_{\gamma\gamma}|$",
    'maxTau_yyj_30':      r"$\tau_{C,j}$ [GeV]",
    'sumTau_yyj_30':      r"$\Sigma\,\tau_{C,j}$ [GeV]",
    'fid_incl':           "Inclusive",
    'fid_VBF':            "VBF enhanced",
    'fid_lep1':           r"$N_{\mathrm{lept}} \geq 1$",
}

Y_AXIS_LABEL = r"$\Delta\sigma_{\mathrm{fid}}\ /\ \sigma_{\mathrm{fid}}$"
Y_AXIS_LABEL_SM = r"$\Delta\sigma_{\mathrm{fid}}\ /\ \sigma_{\mathrm{fid}}^{\mathrm{SM}}$"

# Jet multiplicity variables get "= k" / ">= k" category ticks
JET_MULTIPLICITY_PREFIX = "N_j_"
# Single-bin fiducial regions get no tick label
FIDUCIAL_PREFIX = "fid_"

# ── Y-range rules ────────────────────────────────────────────────────────
Y_RANGE_CAP = 8.0
Y_RANGE_HEADROOM = 0.7

# Fixed symmetric y ranges used in correlated mode
CORR_Y_RANGES = {
    'N_j_30':             0.4,
    'N_j_50':             0.08,
    'pT_yy':              0.05,
    'pTt_yy':             0.05,
    'pT_yyjj_30':         0.25,
    'HT_30':              0.2,
    'yAbs_yy':            0.05,
    'yAbs_j1_30':         0.25,
    'yAbs_j2_30':         0.3,
    'Dphi_j_j_30':        0.25,
    'Dphi_j_j_30_signed': 0.25,
    'Dphi_yy_jj_30':      0.4,
    'pT_j1_30':           0.2,
    'pT_j2_30':           0.25,
    'cosTS_yy':           0.05,
    'm_jj_30':            0.25,
    'Dy_j_j_30':          0.3,
    'Dy_y_y':             0.05,
    'maxTau_yyj_30':      0.15,
    'sumTau_yyj_30':      0.15,
}

# ── Figure annotations ───────────────────────────────────────────────────
DEFAULT_EXPERIMENT_LABEL = "ATLAS"
DEFAULT_STATUS_LABEL = "Internal"
DEFAULT_PROCESS_LABEL = (
    r"$H \rightarrow \gamma\gamma$, $\sqrt{s}$ = 13 TeV, "
    r"36.1 fb$^{-1}$, $m_H$ = 125.09 GeV"
)
TEXT_COLOR = '#000000'

# ── Export settings ──────────────────────────────────────────────────────
FIGURE_SIZE_INCHES = (7.0, 5.0)
EXPORT_DPI = 300
EXPORT_WIDTH_INCHES = 7.0
BOOK_STEM = "uncert"
CORR_SUFFIX = "_corr"
