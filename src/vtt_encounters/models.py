"""
Pydantic models for vtt-encounters.

Monster index entries and party data arrive from the host application as
loosely shaped dictionaries. These models are the boundary where that data is
validated and normalized, so the composer only ever sees typed values.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Rarity(str, Enum):
    """Monster rarity tiers."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    UNIQUE = "unique"


# Rarity tags also show up in trait lists; they are not thematic traits.
RARITY_TAGS: frozenset[str] = frozenset(r.value for r in Rarity)


class Difficulty(str, Enum):
    """Encounter difficulty tiers."""
    TRIVIAL = "Trivial"
    LOW = "Low"
    MODERATE = "Moderate"
    SEVERE = "Severe"
    EXTREME = "Extreme"

    @classmethod
    def _missing_(cls, value: object) -> "Difficulty | None":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class MonsterEntry(BaseModel):
    """A monster index entry eligible for encounter composition.

    Immutable for the duration of a composition run. Traits are lowercased and
    de-duplicated (keeping source order); a missing rarity means common.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Entry id, unique within its provider")
    name: str = Field(description="Monster name")
    level: int = Field(description="Creature level")
    traits: tuple[str, ...] = Field(default=(), description="Lowercase creature traits")
    rarity: Rarity = Field(default=Rarity.COMMON, description="Rarity tier")
    source_ref: Any = Field(default=None, description="Opaque reference to the pack the entry came from")

    @field_validator("traits", mode="before")
    @classmethod
    def normalize_traits(cls, v: Any) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        seen: dict[str, None] = {}
        for trait in v:
            cleaned = str(trait).strip().lower()
            if cleaned:
                seen.setdefault(cleaned, None)
        return tuple(seen)

    @field_validator("rarity", mode="before")
    @classmethod
    def normalize_rarity(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return Rarity.COMMON
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def has_trait(self, trait: str) -> bool:
        """Case-insensitive trait membership."""
        return trait.strip().lower() in self.traits


class RosterMember(BaseModel):
    """An actor from the host roster, reduced to what party derivation needs."""
    name: str
    actor_type: str = Field(default="character", description="Host actor type (character, npc, ...)")
    level: int = Field(ge=0)
    has_player_owner: bool = Field(default=True)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class PartyProfile(BaseModel):
    """Party size and average party level (APL)."""

    size: int = Field(ge=1, description="Number of party members")
    average_level: int = Field(description="Mean member level, rounded half up")

    @classmethod
    def from_levels(cls, levels: Sequence[int]) -> "PartyProfile":
        """Build a profile from member levels.

        Raises:
            ValueError: If ``levels`` is empty.
        """
        if not levels:
            raise ValueError("levels must not be empty")
        mean = Decimal(sum(levels)) / Decimal(len(levels))
        return cls(size=len(levels), average_level=_round_half_up(mean))

    @classmethod
    def from_roster(cls, roster: Sequence[RosterMember]) -> "PartyProfile":
        """Build a profile from player-owned character actors only.

        Raises:
            ValueError: If the roster holds no player characters.
        """
        levels = [
            m.level for m in roster
            if m.actor_type == "character" and m.has_player_owner
        ]
        if not levels:
            raise ValueError("No player characters found to scale encounter")
        return cls.from_levels(levels)


class GridType(str, Enum):
    """Scene grid kinds. Only gridless scenes skip cell snapping."""
    GRIDLESS = "gridless"
    SQUARE = "square"
    HEX = "hex"


class GridSpec(BaseModel):
    """Grid geometry of a scene, in pixels."""
    size: int = Field(default=100, gt=0, description="Grid unit size")
    cell_width: int | None = Field(default=None, gt=0, description="Cell width (defaults to size)")
    cell_height: int | None = Field(default=None, gt=0, description="Cell height (defaults to size)")
    grid_type: GridType = Field(default=GridType.SQUARE)

    @property
    def w(self) -> int:
        return self.cell_width or self.size

    @property
    def h(self) -> int:
        return self.cell_height or self.size


class TokenPlacement(BaseModel):
    """A token placed on a scene for a chosen monster."""
    actor_id: str
    entry_id: str
    name: str
    x: int
    y: int
    elevation: int = 0
    hidden: bool = True


class Scene(BaseModel):
    """A scene that can host a random encounter."""
    id: str | None = None
    name: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    grid: GridSpec = Field(default_factory=GridSpec)
    tokens: list[TokenPlacement] = Field(default_factory=list)

    @property
    def center(self) -> tuple[int, int]:
        return self.width // 2, self.height // 2


class EncounterSelection(BaseModel):
    """Output of one selection loop run."""
    chosen: list[MonsterEntry] = Field(default_factory=list, description="Entries in acceptance order")
    total_cost: int = Field(default=0, ge=0)
    attempts: int = Field(default=0, ge=0)


class EncounterPlan(BaseModel):
    """A composed (not yet placed) encounter."""
    difficulty: Difficulty
    budget: int = Field(ge=0)
    party: PartyProfile
    trait: str = ""
    rarity: str = "any"
    candidate_count: int = Field(default=0, ge=0)
    chosen: list[MonsterEntry] = Field(default_factory=list)
    total_cost: int = Field(default=0, ge=0)
    notes: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.chosen


class EncounterReport(BaseModel):
    """A composed encounter together with its placement outcome."""
    plan: EncounterPlan
    scene_name: str | None = None
    placements: list[TokenPlacement] = Field(default_factory=list)
    successful_spawns: int = Field(default=0, ge=0)
