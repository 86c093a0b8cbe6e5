"""
Random encounter generation workflow.

Ties the pieces together: derive the budget, query the candidate provider,
filter, select, then hand every chosen monster to a placement service in
order. Composition is synchronous; only placement is awaited.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Sequence

from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import (
    Difficulty,
    EncounterPlan,
    EncounterReport,
    PartyProfile,
    Rarity,
    Scene,
)
from vtt_encounters.providers import CandidateProvider
from vtt_encounters.store import DocumentStore

from .budget import derive_budget, parse_difficulty
from .filtering import ANY_RARITY, filter_candidates
from .placement import PlacementService, ScenePlacementService
from .selection import RandomSource, select_encounter

logger = logging.getLogger("vtt-encounters.composer")


class EncounterGenerationError(Exception):
    """Raised when an encounter cannot be generated at all (e.g. no scenes)."""
    pass


def describe_filters(trait: str, rarity: str) -> str:
    """Human-readable summary of the active filters, '' when none are set."""
    parts = []
    if trait:
        parts.append(f'trait "{trait}"')
    if rarity and rarity != ANY_RARITY:
        parts.append(f'rarity "{rarity}"')
    return " and ".join(parts)


class EncounterGenerator:
    """Composes random encounters and places them on scenes.

    Args:
        provider: Source of monster candidates.
        config: Composer configuration (defaults reproduce standard behaviour).
        rng: Random source shared by scene choice and monster selection.
        store: Optional document store used by the default placement service.
    """

    def __init__(
        self,
        provider: CandidateProvider,
        config: ComposerConfig | None = None,
        rng: RandomSource | None = None,
        store: DocumentStore | None = None,
    ):
        self.provider = provider
        self.config = config or ComposerConfig()
        self.rng = rng or random.Random()
        self.store = store

    def compose(
        self,
        party: PartyProfile,
        difficulty: Difficulty | str,
        trait: str = "",
        rarity: str | Rarity = ANY_RARITY,
    ) -> EncounterPlan:
        """Compose an encounter without placing it.

        Raises:
            InvalidDifficultyError: If the difficulty is unknown.
            ValueError: If the rarity is unknown.
        """
        tier = parse_difficulty(difficulty)
        budget = derive_budget(tier, party.size, self.config)
        trait = (trait or "").strip()
        rarity_value = rarity.value if isinstance(rarity, Rarity) else (rarity or ANY_RARITY).strip().lower()

        logger.info(
            f"Composing {tier.value} encounter: party of {party.size}, APL {party.average_level}, "
            f"budget {budget} XP, theme {trait or 'random'}, rarity {rarity_value}"
        )

        pool = self.provider.get_candidates()
        candidates = filter_candidates(pool, party.average_level, trait, rarity_value, self.config)

        plan = EncounterPlan(
            difficulty=tier,
            budget=budget,
            party=party,
            trait=trait,
            rarity=rarity_value,
            candidate_count=len(candidates),
        )

        if not candidates:
            filters = describe_filters(trait, rarity_value)
            plan.notes.append(
                f"Could not find suitable monsters matching level and {filters or 'filter criteria'}. "
                "Try broadening your search."
            )
            logger.info("No eligible candidates for this encounter")
            return plan

        selection = select_encounter(
            candidates, budget, party.average_level, rng=self.rng, config=self.config,
        )
        plan.chosen = selection.chosen
        plan.total_cost = selection.total_cost

        if selection.total_cost < budget:
            plan.notes.append(
                f"Budget not fully spent ({selection.total_cost}/{budget} XP) "
                f"after {selection.attempts} attempts."
            )
        return plan

    def _choose_scene(self, scenes: Sequence[Scene]) -> Scene:
        index = int(self.rng.random() * len(scenes))
        return scenes[min(index, len(scenes) - 1)]

    def _default_placement(self, scene: Scene) -> PlacementService:
        return ScenePlacementService(scene, store=self.store, config=self.config)

    async def generate(
        self,
        party: PartyProfile,
        difficulty: Difficulty | str,
        scenes: Sequence[Scene],
        trait: str = "",
        rarity: str | Rarity = ANY_RARITY,
        placement_factory: Callable[[Scene], PlacementService] | None = None,
    ) -> EncounterReport:
        """Compose an encounter on a random scene and place every monster.

        Args:
            party: Party profile.
            difficulty: Difficulty tier.
            scenes: Scenes to choose from.
            trait: Optional theme trait.
            rarity: ``"any"`` or a rarity name.
            placement_factory: Builds the placement service for the chosen
                scene; defaults to a ScenePlacementService anchored at the
                scene centre.

        Returns:
            EncounterReport with the plan and placement outcome.

        Raises:
            EncounterGenerationError: If no scenes are available.
        """
        if not scenes:
            raise EncounterGenerationError("No scenes available for a random encounter")

        scene = self._choose_scene(scenes)
        plan = self.compose(party, difficulty, trait, rarity)
        report = EncounterReport(plan=plan, scene_name=scene.name)
        if plan.is_empty:
            return report

        placement = (placement_factory or self._default_placement)(scene)
        for index, entry in enumerate(plan.chosen):
            if await placement.place(entry, index):
                report.successful_spawns += 1

        if isinstance(placement, ScenePlacementService):
            report.placements = list(placement.placements)

        logger.info(
            f"Encounter generated on '{scene.name}' with "
            f"{report.successful_spawns}/{len(plan.chosen)} creatures"
        )
        return report
