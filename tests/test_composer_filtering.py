"""
Tests for candidate filtering.

Covers the level window, rarity filtering (missing rarity counts as common),
trait filtering, and the name-search fallback for themes without tags.
"""

import pytest

from vtt_encounters.composer.filtering import filter_candidates
from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import MonsterEntry, Rarity


def _ids(entries):
    return [e.id for e in entries]


class TestLevelWindow:
    """Level window [apl - 3, apl + 2]."""

    def test_keeps_window_only(self, monster_pool):
        result = filter_candidates(monster_pool, apl=5)
        assert _ids(result) == ["gob", "imp", "wolf", "ogre"]

    def test_window_bounds_inclusive(self):
        pool = [MonsterEntry(id=str(lvl), name=f"L{lvl}", level=lvl) for lvl in range(0, 11)]
        result = filter_candidates(pool, apl=5)
        assert [e.level for e in result] == [2, 3, 4, 5, 6, 7]

    def test_custom_window(self):
        pool = [MonsterEntry(id=str(lvl), name=f"L{lvl}", level=lvl) for lvl in range(0, 11)]
        config = ComposerConfig(level_window_below=1, level_window_above=0)
        assert [e.level for e in filter_candidates(pool, apl=5, config=config)] == [4, 5]

    def test_empty_pool(self):
        assert filter_candidates([], apl=5) == []


class TestRarityFilter:
    """Rarity filtering."""

    def test_any_keeps_everything(self, monster_pool):
        assert len(filter_candidates(monster_pool, apl=5, rarity="any")) == 4

    def test_rare_only(self):
        pool = [
            MonsterEntry(id="a", name="Common Thing", level=5, rarity="common"),
            MonsterEntry(id="b", name="Rare Thing", level=5, rarity="rare"),
            MonsterEntry(id="c", name="Untagged Thing", level=5),
            MonsterEntry(id="d", name="Unique Thing", level=5, rarity="unique"),
            MonsterEntry(id="e", name="Another Rare", level=4, rarity="RARE"),
        ]
        result = filter_candidates(pool, apl=5, rarity="rare")
        assert _ids(result) == ["b", "e"]
        assert all(e.rarity == Rarity.RARE for e in result)

    def test_missing_rarity_counts_as_common(self):
        pool = [
            MonsterEntry(id="a", name="Untagged", level=5, rarity=None),
            MonsterEntry(id="b", name="Empty", level=5, rarity=""),
        ]
        assert _ids(filter_candidates(pool, apl=5, rarity="common")) == ["a", "b"]

    def test_rarity_case_insensitive(self, monster_pool):
        assert _ids(filter_candidates(monster_pool, apl=5, rarity="Uncommon")) == ["ogre"]

    def test_accepts_enum(self, monster_pool):
        assert _ids(filter_candidates(monster_pool, apl=5, rarity=Rarity.UNCOMMON)) == ["ogre"]

    def test_invalid_rarity_raises(self, monster_pool):
        with pytest.raises(ValueError, match="Invalid rarity"):
            filter_candidates(monster_pool, apl=5, rarity="legendary")


class TestTraitFilter:
    """Trait filtering and the name fallback."""

    def test_trait_match(self, monster_pool):
        assert _ids(filter_candidates(monster_pool, apl=5, trait="humanoid")) == ["gob", "ogre"]

    def test_trait_case_insensitive(self, monster_pool):
        assert _ids(filter_candidates(monster_pool, apl=5, trait="FIEND")) == ["imp"]

    def test_empty_trait_is_no_constraint(self, monster_pool):
        assert len(filter_candidates(monster_pool, apl=5, trait="")) == 4
        assert len(filter_candidates(monster_pool, apl=5, trait="   ")) == 4

    def test_trait_and_rarity_combined(self, monster_pool):
        assert _ids(filter_candidates(monster_pool, apl=5, trait="humanoid", rarity="common")) == ["gob"]

    def test_name_fallback(self):
        """No entry is tagged fiend, but one is named Fiendling."""
        pool = [
            MonsterEntry(id="a", name="Fiendling", level=5, traits=["humanoid"]),
            MonsterEntry(id="b", name="Goblin", level=5, traits=["goblin"]),
        ]
        assert _ids(filter_candidates(pool, apl=5, trait="fiend")) == ["a"]

    def test_name_fallback_ignores_rarity(self):
        pool = [
            MonsterEntry(id="a", name="Fiendling", level=5, rarity="common"),
            MonsterEntry(id="b", name="Rare Beast", level=5, rarity="rare"),
        ]
        assert _ids(filter_candidates(pool, apl=5, trait="fiend", rarity="rare")) == ["a"]

    def test_name_fallback_respects_level_window(self):
        pool = [MonsterEntry(id="a", name="Fiendling", level=12)]
        assert filter_candidates(pool, apl=5, trait="fiend") == []

    def test_no_fallback_when_tags_match(self):
        pool = [
            MonsterEntry(id="a", name="Fiendling", level=5),
            MonsterEntry(id="b", name="Imp", level=5, traits=["fiend"]),
        ]
        assert _ids(filter_candidates(pool, apl=5, trait="fiend")) == ["b"]

    def test_nothing_matches(self, monster_pool):
        assert filter_candidates(monster_pool, apl=5, trait="dragon") == []
