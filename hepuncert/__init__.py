"""
HepData Uncertainty Band Plotter v1.0.0

Parses HepData-style cross-section tables, validates their bin and
uncertainty-source structure, and computes nested, normalised
uncertainty bands per measured variable.  Bands are either the fixed
luminosity / correction factor / signal extraction / statistics
breakdown, or the most significant correlated systematic sources with
the remainder merged into an "others" term.

Band charts are exported as a multi-page PDF or one file per variable.
"""

APP_NAME = "HepData Uncertainty Band Plotter"
APP_VERSION = "1.0.0"
APP_DATE = "2026-10-19"
__version__ = APP_VERSION
