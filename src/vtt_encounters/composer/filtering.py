"""
Candidate filtering for random encounters.

Narrows a candidate pool to the party's level window, then by rarity and by
an optional theme trait. A theme that matches no trait tag falls back to a
name search so a thematic request does not come back empty just because the
tag is missing.
"""

from __future__ import annotations

import logging
from typing import Iterable

from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import MonsterEntry, Rarity

logger = logging.getLogger("vtt-encounters.composer")

ANY_RARITY = "any"


def _normalize_rarity(rarity: str | Rarity | None) -> str:
    if rarity is None:
        return ANY_RARITY
    if isinstance(rarity, Rarity):
        return rarity.value
    value = rarity.strip().lower() or ANY_RARITY
    if value != ANY_RARITY and value not in {r.value for r in Rarity}:
        valid = ", ".join([ANY_RARITY] + [r.value for r in Rarity])
        raise ValueError(f"Invalid rarity: '{rarity}'. Must be one of: {valid}")
    return value


def in_level_window(entry: MonsterEntry, apl: int, config: ComposerConfig) -> bool:
    """Whether an entry's level lies within [apl - below, apl + above]."""
    return apl - config.level_window_below <= entry.level <= apl + config.level_window_above


def filter_candidates(
    pool: Iterable[MonsterEntry],
    apl: int,
    trait: str | None = "",
    rarity: str | Rarity | None = ANY_RARITY,
    config: ComposerConfig | None = None,
) -> list[MonsterEntry]:
    """Filter a candidate pool for a party.

    Rules, in order:
    1. Level within ``[apl - 3, apl + 2]``.
    2. Rarity equal to the requested one unless it is ``"any"``.
    3. Trait tag present (case-insensitive) when a trait is given. If nothing
       matches, the level-filtered pool is searched again (ignoring rarity)
       for entries whose name contains the trait.

    Args:
        pool: Candidate entries. Order is preserved.
        apl: Average party level.
        trait: Optional theme trait; empty means no constraint.
        rarity: ``"any"`` or a rarity name.
        config: Optional composer configuration.

    Returns:
        Filtered list, possibly empty.

    Raises:
        ValueError: If the rarity is not recognized.
    """
    config = config or ComposerConfig()
    rarity_value = _normalize_rarity(rarity)
    trait_value = (trait or "").strip().lower()

    level_filtered = [e for e in pool if in_level_window(e, apl, config)]

    valid = level_filtered
    if rarity_value != ANY_RARITY:
        valid = [e for e in valid if e.rarity.value == rarity_value]

    if trait_value:
        valid = [e for e in valid if e.has_trait(trait_value)]

        if not valid:
            valid = [e for e in level_filtered if trait_value in e.name.lower()]
            logger.debug(
                f"No entries tagged '{trait_value}'; name search found {len(valid)}"
            )

    return valid
