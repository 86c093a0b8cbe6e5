"""
XP budget derivation for random encounters.

Each difficulty tier has a base XP value written for a party of four. Every
member above or below that baseline shifts the budget by a fixed amount, and
the result never drops below the budget floor.
"""

from __future__ import annotations

from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import Difficulty


# =============================================================================
# Constants: Base XP per difficulty tier (party of four)
# =============================================================================

BASE_XP: dict[Difficulty, int] = {
    Difficulty.TRIVIAL:  40,
    Difficulty.LOW:      60,
    Difficulty.MODERATE: 80,
    Difficulty.SEVERE:   120,
    Difficulty.EXTREME:  160,
}


class InvalidDifficultyError(ValueError):
    """Raised for a difficulty tier that does not exist."""
    pass


def parse_difficulty(difficulty: Difficulty | str) -> Difficulty:
    """Resolve a difficulty tier from an enum member or a case-insensitive name.

    Raises:
        InvalidDifficultyError: If the name matches no tier.
    """
    if isinstance(difficulty, Difficulty):
        return difficulty
    try:
        return Difficulty(difficulty)
    except ValueError:
        valid = ", ".join(d.value for d in Difficulty)
        raise InvalidDifficultyError(
            f"Invalid difficulty: '{difficulty}'. Must be one of: {valid}"
        ) from None


def derive_budget(
    difficulty: Difficulty | str,
    party_size: int,
    config: ComposerConfig | None = None,
) -> int:
    """Calculate the XP budget for an encounter.

    Args:
        difficulty: Difficulty tier (enum member or name, case-insensitive).
        party_size: Number of party members (>= 1).
        config: Optional composer configuration.

    Returns:
        ``base_xp + 20 * (party_size - 4)``, floored at 40.

    Raises:
        InvalidDifficultyError: If the difficulty is unknown.
        ValueError: If party_size < 1.
    """
    config = config or ComposerConfig()
    tier = parse_difficulty(difficulty)
    if party_size < 1:
        raise ValueError(f"party_size must be >= 1, got {party_size}")

    budget = BASE_XP[tier] + config.budget_per_extra_member * (party_size - config.baseline_party_size)
    return max(budget, config.minimum_budget)
