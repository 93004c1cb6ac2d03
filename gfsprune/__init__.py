"""
gfsprune - grandfather-father-son backup pruning

Classifies dated backup files against monthly, weekly, daily and intraday
retention windows and removes the ones no window keeps.
"""

try:
    from importlib.metadata import version

    __version__ = version("gfsprune")
except Exception:
    __version__ = "0.0.0"  # Fallback for development
