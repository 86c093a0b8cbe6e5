"""
vtt-encounters - budget-constrained random encounter generation for virtual tabletops.
"""

from .models import *
from .composer import EncounterGenerator, derive_budget, filter_candidates, select_encounter

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("vtt-encounters")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable

__all__ = ["EncounterGenerator", "derive_budget", "filter_candidates", "select_encounter"]
