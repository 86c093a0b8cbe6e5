"""
Pytest configuration and fixtures for vtt-encounters tests.
"""

import os
import sys
import tempfile
from pathlib import Path
import pytest

# Add src directory to Python path to allow importing vtt_encounters
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Keep the server module's document store out of the working tree
os.environ.setdefault("VTT_ENCOUNTERS_STORAGE_DIR", tempfile.mkdtemp(prefix="vtt-encounters-"))

from vtt_encounters.models import MonsterEntry


class ScriptedRandom:
    """Random source returning a fixed sequence of draws.

    Once the script is exhausted it keeps returning ``default``.
    """

    def __init__(self, draws, default: float = 0.0):
        self.draws = list(draws)
        self.default = default
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self.draws:
            return self.draws.pop(0)
        return self.default


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def scripted_random():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom


@pytest.fixture
def monster_pool() -> list[MonsterEntry]:
    """A mixed pool around party level 5."""
    return [
        MonsterEntry(id="gob", name="Goblin Warrior", level=3, traits=["goblin", "humanoid"], source_ref="monster-core"),
        MonsterEntry(id="imp", name="Imp", level=5, traits=["devil", "fiend"], source_ref="monster-core"),
        MonsterEntry(id="wolf", name="Wolf", level=4, traits=["animal"], source_ref="bestiary"),
        MonsterEntry(id="ogre", name="Ogre Warrior", level=7, traits=["giant", "humanoid"], rarity="uncommon", source_ref="bestiary"),
        MonsterEntry(id="lich", name="Demilich", level=8, traits=["undead"], rarity="rare", source_ref="bestiary"),
        MonsterEntry(id="rat", name="Giant Rat", level=1, traits=["animal"], source_ref="bestiary"),
    ]
