"""
Tests for the encounter generation workflow.

Covers composition (budget, filters, notes), scene choice, sequential
placement in chosen order, and failure handling.
"""

import random

import pytest

from vtt_encounters.composer.budget import InvalidDifficultyError
from vtt_encounters.composer.generator import (
    EncounterGenerationError,
    EncounterGenerator,
    describe_filters,
)
from vtt_encounters.composer.placement import PlacementService, scene_document_data
from vtt_encounters.models import Difficulty, MonsterEntry, PartyProfile, Scene
from vtt_encounters.providers import StaticCandidateProvider
from vtt_encounters.store import InMemoryDocumentStore


class RecordingPlacement(PlacementService):
    """Placement service that records calls and fails on request."""

    def __init__(self, fail_ids=()):
        self.calls: list[tuple[str, int]] = []
        self.fail_ids = set(fail_ids)

    async def place(self, entry: MonsterEntry, spawn_index: int) -> bool:
        self.calls.append((entry.id, spawn_index))
        return entry.id not in self.fail_ids


@pytest.fixture
def party() -> PartyProfile:
    return PartyProfile.from_levels([5, 5, 5, 5])


@pytest.fixture
def generator(monster_pool) -> EncounterGenerator:
    return EncounterGenerator(StaticCandidateProvider(monster_pool), rng=random.Random(3))


@pytest.fixture
def scenes() -> list[Scene]:
    return [
        Scene(name="Forest Clearing", width=4000, height=3000),
        Scene(name="Old Crypt", width=2000, height=2000),
    ]


class TestDescribeFilters:
    """Tests for describe_filters()."""

    def test_no_filters(self):
        assert describe_filters("", "any") == ""

    def test_both_filters(self):
        assert describe_filters("fiend", "rare") == 'trait "fiend" and rarity "rare"'

    def test_rarity_only(self):
        assert describe_filters("", "unique") == 'rarity "unique"'


class TestCompose:
    """Tests for EncounterGenerator.compose()."""

    def test_plan_fields(self, generator, party):
        plan = generator.compose(party, "Moderate")
        assert plan.difficulty == Difficulty.MODERATE
        assert plan.budget == 80
        assert plan.candidate_count == 4
        assert plan.total_cost <= 90
        assert plan.chosen

    def test_trait_filter_applied(self, generator, party):
        plan = generator.compose(party, "Severe", trait="Humanoid")
        assert plan.trait == "Humanoid"
        assert {e.id for e in plan.chosen} <= {"gob", "ogre"}

    def test_empty_pool_adds_note(self, generator, party):
        plan = generator.compose(party, "Low", trait="dragon", rarity="rare")
        assert plan.is_empty
        assert plan.candidate_count == 0
        assert 'trait "dragon" and rarity "rare"' in plan.notes[0]

    def test_empty_pool_without_filters(self, party):
        generator = EncounterGenerator(StaticCandidateProvider([]))
        plan = generator.compose(party, "Low")
        assert "filter criteria" in plan.notes[0]

    def test_unreached_budget_adds_note(self, party):
        troll = MonsterEntry(id="troll", name="Troll", level=7)
        generator = EncounterGenerator(StaticCandidateProvider([troll]), rng=random.Random(0))
        plan = generator.compose(party, "Trivial")
        assert plan.is_empty
        assert "Budget not fully spent (0/40 XP) after 100 attempts" in plan.notes[0]

    def test_invalid_difficulty(self, generator, party):
        with pytest.raises(InvalidDifficultyError):
            generator.compose(party, "Nightmare")

    def test_invalid_rarity(self, generator, party):
        with pytest.raises(ValueError, match="Invalid rarity"):
            generator.compose(party, "Low", rarity="mythic")

    def test_same_seed_same_plan(self, monster_pool, party):
        first = EncounterGenerator(StaticCandidateProvider(monster_pool), rng=random.Random(11))
        second = EncounterGenerator(StaticCandidateProvider(monster_pool), rng=random.Random(11))
        assert first.compose(party, "Extreme").chosen == second.compose(party, "Extreme").chosen


class TestGenerate:
    """Tests for EncounterGenerator.generate()."""

    @pytest.mark.anyio
    async def test_places_every_entry_in_order(self, generator, party, scenes):
        placement = RecordingPlacement()
        report = await generator.generate(
            party, "Severe", scenes, placement_factory=lambda scene: placement,
        )
        assert [c[0] for c in placement.calls] == [e.id for e in report.plan.chosen]
        assert [c[1] for c in placement.calls] == list(range(len(report.plan.chosen)))
        assert report.successful_spawns == len(report.plan.chosen)
        assert report.scene_name in {s.name for s in scenes}

    @pytest.mark.anyio
    async def test_failed_placements_are_counted_not_raised(self, party, scenes):
        pool = [MonsterEntry(id="imp", name="Imp", level=5, traits=["fiend"])]
        generator = EncounterGenerator(StaticCandidateProvider(pool), rng=random.Random(0))
        placement = RecordingPlacement(fail_ids={"imp"})

        report = await generator.generate(party, "Moderate", scenes, placement_factory=lambda s: placement)
        assert len(report.plan.chosen) == 2
        assert len(placement.calls) == 2
        assert report.successful_spawns == 0

    @pytest.mark.anyio
    async def test_scene_choice_uses_random_source(self, monster_pool, party, scenes, scripted_random):
        rng = scripted_random([0.75], default=0.0)
        generator = EncounterGenerator(StaticCandidateProvider(monster_pool), rng=rng)
        report = await generator.generate(party, "Trivial", scenes, placement_factory=lambda s: RecordingPlacement())
        assert report.scene_name == "Old Crypt"

    @pytest.mark.anyio
    async def test_empty_plan_places_nothing(self, generator, party, scenes):
        placement = RecordingPlacement()
        report = await generator.generate(
            party, "Low", scenes, trait="dragon", placement_factory=lambda s: placement,
        )
        assert report.plan.is_empty
        assert placement.calls == []
        assert report.successful_spawns == 0

    @pytest.mark.anyio
    async def test_no_scenes_raises(self, generator, party):
        with pytest.raises(EncounterGenerationError, match="No scenes"):
            await generator.generate(party, "Low", [])

    @pytest.mark.anyio
    async def test_default_placement_uses_scene_center_and_store(self, monster_pool, party):
        store = InMemoryDocumentStore()
        scene = Scene(name="Arena", width=4000, height=3000)
        store.create("Scene", {"name": "Arena", **scene_document_data(scene)})
        generator = EncounterGenerator(StaticCandidateProvider(monster_pool), rng=random.Random(5), store=store)

        report = await generator.generate(party, "Moderate", [scene])

        assert report.successful_spawns == len(report.plan.chosen)
        assert (report.placements[0].x, report.placements[0].y) == (2000, 1500)
        assert len(scene.tokens) == len(report.plan.chosen)
        assert store.list("Actor")
