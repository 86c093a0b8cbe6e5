"""
vtt-encounters MCP Server
Random encounter generation for a virtual tabletop, built with FastMCP.
"""

import logging
import random
from typing import Annotated

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .bootstrap import SCENE_FOLDER_NAME, bootstrap, get_or_create_folder
from .composer import (
    EncounterGenerationError,
    EncounterGenerator,
    derive_budget,
)
from .composer.placement import scene_document_data, scene_from_document
from .config import ComposerConfig, ServerSettings
from .models import EncounterReport, GridSpec, GridType, PartyProfile, Scene
from .providers import CandidateProvider, CandidateProviderError, PackCandidateProvider
from .store import DocumentStore, DocumentStoreError, JsonDocumentStore

logger = logging.getLogger("vtt-encounters")

logging.basicConfig(
    level=logging.DEBUG,
    )

if not load_dotenv():
    logger.warning("❌ .env file invalid or not found! Using defaults for storage and packs.")

settings = ServerSettings.from_env()
logger.debug(f"📂 Data path: {settings.storage_dir}")

store = JsonDocumentStore(settings.store_path)
bootstrap(store, is_gm=True)
logger.debug("✅ Document store initialized")

provider = PackCandidateProvider(settings.pack_paths)
logger.debug(f"📚 {len(settings.pack_paths)} compendium packs configured")

composer_config = ComposerConfig()

mcp = FastMCP(
    name="vtt-encounters"
)

logger.debug("✅ Server initialized, registering tools")


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _format_encounter_report(report: EncounterReport) -> str:
    """Format an EncounterReport into a human-readable chat string."""
    plan = report.plan
    lines = []
    lines.append("**Random Encounter Report**")
    if report.scene_name:
        lines.append(f"Scene: {report.scene_name}")
    lines.append(f"Difficulty: {plan.difficulty.value} ({plan.budget} XP)")
    lines.append(f"APL: {plan.party.average_level}, Party Size: {plan.party.size}")
    lines.append(f"Theme: {plan.trait or 'Random'} | Rarity: {plan.rarity.capitalize()}")
    lines.append("")

    if plan.is_empty:
        lines.append("No creatures spawned.")
    else:
        lines.append("Creatures Spawned:")
        for entry in plan.chosen:
            lines.append(f"  - {entry.name} (Level {entry.level})")
        lines.append(f"Total cost: {plan.total_cost} XP")
        if report.placements:
            lines.append("")
            lines.append("Tokens are spawned hidden around the map center for GM placement:")
            for token in report.placements:
                lines.append(f"  {token.name}: ({token.x}, {token.y})")
        lines.append("")
        lines.append(f"Encounter generated with {report.successful_spawns} creatures!")

    for note in plan.notes:
        lines.append(f"Note: {note}")

    return "\n".join(lines)


def _list_scenes_logic(doc_store: DocumentStore) -> list[Scene]:
    folder = get_or_create_folder(doc_store, SCENE_FOLDER_NAME, "Scene")
    if folder is None:
        return []
    return [scene_from_document(doc) for doc in doc_store.list("Scene", folder=folder.id)]


def _add_scene_logic(
    doc_store: DocumentStore,
    name: str,
    width: int,
    height: int,
    grid_size: int,
    gridless: bool,
) -> str:
    if doc_store.find_by_name("Scene", name) is not None:
        return f"Scene '{name}' already exists."

    folder = get_or_create_folder(doc_store, SCENE_FOLDER_NAME, "Scene")
    if folder is None:
        return f"Folder \"{SCENE_FOLDER_NAME}\" could not be created."

    grid_type = GridType.GRIDLESS if gridless else GridType.SQUARE
    scene = Scene(name=name, width=width, height=height, grid=GridSpec(size=grid_size, grid_type=grid_type))
    doc_store.create("Scene", {"name": name, "folder": folder.id, **scene_document_data(scene)})
    return f"Added scene '{name}' ({width}x{height}, grid {grid_size}) to \"{SCENE_FOLDER_NAME}\"."


async def _generate_encounter_logic(
    doc_store: DocumentStore,
    candidate_provider: CandidateProvider,
    party_levels: list[int],
    difficulty: str,
    trait: str = "",
    rarity: str = "any",
    seed: int | None = None,
    config: ComposerConfig | None = None,
) -> str:
    try:
        party = PartyProfile.from_levels(party_levels)
    except ValueError as e:
        return f"Cannot generate encounter: {e}."

    scenes = _list_scenes_logic(doc_store)
    if not scenes:
        return f"No scenes found in folder \"{SCENE_FOLDER_NAME}\". Add one with add_encounter_scene."

    generator = EncounterGenerator(
        candidate_provider,
        config=config,
        rng=random.Random(seed),
        store=doc_store,
    )
    try:
        report = await generator.generate(party, difficulty, scenes, trait=trait, rarity=rarity)
    except ValueError as e:
        return f"Invalid encounter parameters: {e}"
    except (CandidateProviderError, EncounterGenerationError, DocumentStoreError) as e:
        logger.error(f"Encounter generation failed: {e}")
        return f"Encounter generation failed: {e}"

    return _format_encounter_report(report)


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------

@mcp.tool
def calculate_encounter_budget(
    difficulty: Annotated[str, Field(description="Encounter difficulty: Trivial, Low, Moderate, Severe, Extreme")],
    party_size: Annotated[int, Field(description="Number of party members", ge=1)],
) -> str:
    """Calculate the XP budget for an encounter of the given difficulty."""
    try:
        budget = derive_budget(difficulty, party_size, composer_config)
    except ValueError as e:
        return f"Invalid encounter parameters: {e}"
    return f"XP Budget for a {difficulty} encounter (party of {party_size}): {budget} XP"


@mcp.tool
def add_encounter_scene(
    name: Annotated[str, Field(description="Scene name")],
    width: Annotated[int, Field(description="Scene width in pixels", gt=0)] = 4000,
    height: Annotated[int, Field(description="Scene height in pixels", gt=0)] = 3000,
    grid_size: Annotated[int, Field(description="Grid unit size in pixels", gt=0)] = 100,
    gridless: Annotated[bool, Field(description="Whether the scene has no grid")] = False,
) -> str:
    """Add a scene that random encounters can be generated on."""
    return _add_scene_logic(store, name, width, height, grid_size, gridless)


@mcp.tool
def list_encounter_scenes() -> str:
    """List the scenes random encounters are drawn from."""
    scenes = _list_scenes_logic(store)
    if not scenes:
        return f"No scenes found in folder \"{SCENE_FOLDER_NAME}\"."
    lines = [f"**Scenes in \"{SCENE_FOLDER_NAME}\":**"]
    for scene in scenes:
        lines.append(f"  - {scene.name} ({scene.width}x{scene.height}, {len(scene.tokens)} tokens)")
    return "\n".join(lines)


@mcp.tool
async def generate_random_encounter(
    party_levels: Annotated[list[int], Field(description="Levels of the player characters in the party")],
    difficulty: Annotated[str, Field(description="Encounter difficulty: Trivial, Low, Moderate, Severe, Extreme")] = "Moderate",
    trait: Annotated[str, Field(description="Optional shared creature trait (e.g., fiend, swarm, fire)")] = "",
    rarity: Annotated[str, Field(description="Monster rarity filter: any, common, uncommon, rare, unique")] = "any",
    seed: Annotated[int | None, Field(description="Optional random seed for a reproducible encounter")] = None,
) -> str:
    """Generate a random encounter scaled to the party and spawn it on a random scene.

    Monsters are picked within an XP budget, favouring repeated monster types and
    shared traits, and spawned as hidden tokens near the centre of the scene.
    """
    return await _generate_encounter_logic(
        store, provider, party_levels, difficulty, trait, rarity, seed, composer_config,
    )


def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
