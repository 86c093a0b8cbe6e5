"""
Budget-constrained monster selection.

Repeatedly picks monsters from a filtered candidate pool until the XP budget is
spent or the attempt cap is reached. Picks favour reusing monster types that
were already chosen (consistency), and new picks lean towards monsters sharing
a trait with earlier choices (synergy). Randomness comes from an injected
source so a scripted sequence of draws reproduces a run exactly.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import RARITY_TAGS, EncounterSelection, MonsterEntry

logger = logging.getLogger("vtt-encounters.composer")


# =============================================================================
# Constants: Cost per level delta (candidate level - party level)
# =============================================================================

COST_TABLE: dict[int, int] = {
    -4: 10,
    -3: 15,
    -2: 20,
    -1: 30,
    0:  40,
    1:  60,
    2:  80,
}


class RandomSource(Protocol):
    """Anything exposing ``random() -> float`` in [0, 1), e.g. ``random.Random``."""

    def random(self) -> float:
        ...


@dataclass
class SelectionState:
    """Mutable bookkeeping for a single selection run."""
    spent: int = 0
    chosen: list[MonsterEntry] = field(default_factory=list)
    chosen_ids: dict[str, None] = field(default_factory=dict)  # insertion-ordered set
    seen_traits: list[str] = field(default_factory=list)

    def accept(self, entry: MonsterEntry, cost: int) -> None:
        self.chosen.append(entry)
        self.spent += cost
        self.chosen_ids.setdefault(entry.id, None)
        self.seen_traits.extend(entry.traits)

    def common_traits(self) -> set[str]:
        """Distinct seen traits, rarity tags excluded."""
        return {t for t in self.seen_traits if t not in RARITY_TAGS}


def cost_for_delta(delta: int) -> int | None:
    """XP cost for a level delta, or None when the delta is ineligible."""
    return COST_TABLE.get(delta)


def _pick(items: Sequence, rng: RandomSource):
    index = int(rng.random() * len(items))
    return items[min(index, len(items) - 1)]


def _next_candidate(
    candidates: Sequence[MonsterEntry],
    state: SelectionState,
    rng: RandomSource,
    config: ComposerConfig,
) -> MonsterEntry:
    # Consistency: reuse a monster type already in the encounter
    if state.chosen_ids and rng.random() < config.consistency_chance:
        reuse_id = _pick(list(state.chosen_ids), rng)
        for candidate in candidates:
            if candidate.id == reuse_id:
                return candidate

    # Synergy / new monster
    pool = candidates
    if state.seen_traits:
        common = state.common_traits()
        synergistic = [c for c in candidates if any(t in common for t in c.traits)]
        if synergistic and rng.random() < config.synergy_chance:
            pool = synergistic

    return _pick(pool, rng)


def select_encounter(
    candidates: Sequence[MonsterEntry],
    budget: int,
    apl: int,
    rng: RandomSource | None = None,
    config: ComposerConfig | None = None,
) -> EncounterSelection:
    """Select monsters whose combined cost approximates the budget.

    Args:
        candidates: Filtered candidate pool (treated as a snapshot).
        budget: XP budget for the encounter.
        apl: Average party level.
        rng: Random source; defaults to a fresh ``random.Random()``.
        config: Optional composer configuration.

    Returns:
        EncounterSelection with the chosen entries in acceptance order. The
        total cost never exceeds ``budget + overshoot_tolerance``. An empty
        pool, or a budget no candidate fits, yields an empty or partial result.
    """
    config = config or ComposerConfig()
    rng = rng or random.Random()
    candidates = list(candidates)

    if not candidates:
        return EncounterSelection()

    state = SelectionState()
    ceiling = budget + config.overshoot_tolerance
    attempts = 0

    while state.spent < budget and attempts < config.max_attempts:
        attempts += 1
        pick = _next_candidate(candidates, state, rng, config)

        cost = cost_for_delta(pick.level - apl)
        if cost is None:
            logger.debug(f"Attempt {attempts}: {pick.name} level {pick.level} outside cost table")
            continue

        if state.spent + cost <= ceiling:
            state.accept(pick, cost)
            logger.debug(f"Attempt {attempts}: accepted {pick.name} ({cost} XP, {state.spent}/{budget})")
        else:
            logger.debug(f"Attempt {attempts}: {pick.name} ({cost} XP) would exceed {ceiling}")

    if state.spent < budget:
        logger.info(f"Budget not reached after {attempts} attempts ({state.spent}/{budget} XP)")

    return EncounterSelection(chosen=state.chosen, total_cost=state.spent, attempts=attempts)
