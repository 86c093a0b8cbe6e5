"""
Configuration models for vtt-encounters.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class ComposerConfig(BaseModel):
    """Tunable constants of the encounter composer.

    The defaults reproduce the established encounter behaviour; changing them
    changes which encounters get generated.
    """

    # Selection loop
    max_attempts: int = Field(
        default=100,
        ge=1,
        description="Maximum selection attempts per run"
    )
    overshoot_tolerance: int = Field(
        default=10,
        ge=0,
        description="XP a composition may exceed the budget by"
    )
    consistency_chance: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Chance to reuse an already chosen monster type"
    )
    synergy_chance: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Chance to restrict a new pick to monsters sharing a seen trait"
    )

    # Budget
    minimum_budget: int = Field(
        default=40,
        ge=0,
        description="Budget floor in XP"
    )
    budget_per_extra_member: int = Field(
        default=20,
        ge=0,
        description="XP added (or removed) per party member above (below) the baseline"
    )
    baseline_party_size: int = Field(
        default=4,
        ge=1,
        description="Party size the base XP values are written for"
    )

    # Candidate level window, relative to the average party level
    level_window_below: int = Field(default=3, ge=0)
    level_window_above: int = Field(default=2, ge=0)

    # Placement layout
    tokens_per_row: int = Field(default=5, ge=1, description="Tokens per placement row")
    token_spacing: int = Field(default=2, ge=1, description="Grid units between placed tokens")


class ServerSettings(BaseModel):
    """Settings for the MCP server, read from the environment."""

    storage_dir: Path = Field(description="Directory holding the document store and packs")
    pack_paths: list[Path] = Field(default_factory=list, description="Compendium pack files to load")

    @field_validator("storage_dir")
    @classmethod
    def resolve_storage_dir(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @property
    def store_path(self) -> Path:
        return self.storage_dir / "documents.json"

    @property
    def packs_dir(self) -> Path:
        return self.storage_dir / "packs"

    @classmethod
    def from_env(cls) -> "ServerSettings":
        """Read ``VTT_ENCOUNTERS_STORAGE_DIR`` and ``VTT_ENCOUNTERS_PACKS``.

        When no pack list is given, every JSON/YAML file in ``<storage>/packs``
        is used.
        """
        storage_dir = Path(os.getenv("VTT_ENCOUNTERS_STORAGE_DIR", "data"))
        settings = cls(storage_dir=storage_dir)

        raw_packs = os.getenv("VTT_ENCOUNTERS_PACKS", "")
        if raw_packs.strip():
            settings.pack_paths = [
                Path(p).expanduser() for p in raw_packs.split(os.pathsep) if p.strip()
            ]
        elif settings.packs_dir.is_dir():
            settings.pack_paths = sorted(
                p for p in settings.packs_dir.iterdir()
                if p.suffix.lower() in {".json", ".yaml", ".yml"}
            )
        return settings


__all__ = ["ComposerConfig", "ServerSettings"]
