"""
Encounter composition package for vtt-encounters.

Provides XP budget derivation, candidate filtering, the budget-constrained
selection loop, token placement layout, and the generation workflow that
ties them together.
"""

from .budget import (
    BASE_XP,
    InvalidDifficultyError,
    derive_budget,
    parse_difficulty,
)
from .filtering import ANY_RARITY, filter_candidates
from .selection import (
    COST_TABLE,
    RandomSource,
    SelectionState,
    cost_for_delta,
    select_encounter,
)
from .placement import (
    PlacementService,
    ScenePlacementService,
    spawn_position,
)
from .generator import EncounterGenerationError, EncounterGenerator

__all__ = [
    "BASE_XP",
    "InvalidDifficultyError",
    "derive_budget",
    "parse_difficulty",
    "ANY_RARITY",
    "filter_candidates",
    "COST_TABLE",
    "RandomSource",
    "SelectionState",
    "cost_for_delta",
    "select_encounter",
    "PlacementService",
    "ScenePlacementService",
    "spawn_position",
    "EncounterGenerationError",
    "EncounterGenerator",
]
