"""
formulary — install prebuilt binary releases from declarative formulas.
"""

__version__ = "0.1.0"
