"""
Token placement for composed encounters.

Chosen monsters are laid out in rows from an anchor point (usually the scene
centre) so the GM can move them into position afterwards:

- ``tokens_per_row`` tokens per row (default 5).
- ``token_spacing`` grid units between neighbours (default 2).
- On gridded scenes each position snaps down to its cell boundary.

The layout is deterministic given the chosen order.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from vtt_encounters.bootstrap import MODULE_ID
from vtt_encounters.config import ComposerConfig
from vtt_encounters.models import GridSpec, GridType, MonsterEntry, Scene, TokenPlacement
from vtt_encounters.store import Document, DocumentStore, DocumentStoreError

logger = logging.getLogger("vtt-encounters.composer")


# ---------------------------------------------------------------------------
# Layout math
# ---------------------------------------------------------------------------

def spawn_position(
    spawn_index: int,
    anchor: tuple[int, int],
    grid: GridSpec,
    config: ComposerConfig | None = None,
) -> tuple[int, int]:
    """Calculate where the ``spawn_index``-th token goes.

    Args:
        spawn_index: Position of the entry in the chosen order (0-based).
        anchor: Origin point (x, y) in pixels.
        grid: Grid geometry of the destination scene.
        config: Optional composer configuration.

    Returns:
        Integer (x, y) pixel coordinates.
    """
    config = config or ComposerConfig()
    column = spawn_index % config.tokens_per_row
    row = spawn_index // config.tokens_per_row

    x: float = anchor[0] + column * config.token_spacing * grid.size
    y: float = anchor[1] + row * config.token_spacing * grid.size

    if grid.grid_type != GridType.GRIDLESS:
        x = grid.w * math.floor(x / grid.w)
        y = grid.h * math.floor(y / grid.h)

    return round(x), round(y)


# ---------------------------------------------------------------------------
# Scene <-> document conversion
# ---------------------------------------------------------------------------

def scene_from_document(document: Document) -> Scene:
    """Build a Scene model from a stored Scene document."""
    return Scene.model_validate({**document.data, "id": document.id, "name": document.name})


def scene_document_data(scene: Scene) -> dict[str, Any]:
    """Document payload for a Scene (everything except id and name)."""
    return scene.model_dump(mode="json", exclude={"id", "name"})


# ---------------------------------------------------------------------------
# Placement services
# ---------------------------------------------------------------------------

class PlacementService(ABC):
    """Materializes chosen monsters in the environment, one at a time."""

    @abstractmethod
    async def place(self, entry: MonsterEntry, spawn_index: int) -> bool:
        """Place a single entry.

        Returns:
            True if the monster was placed, False otherwise.
        """
        ...


class ScenePlacementService(PlacementService):
    """Places hidden tokens on a scene.

    When a document store is given, each monster is first imported as a world
    actor (reusing an actor imported earlier from the same source) and the
    scene document is updated after every placement.
    """

    def __init__(
        self,
        scene: Scene,
        anchor: tuple[int, int] | None = None,
        store: DocumentStore | None = None,
        config: ComposerConfig | None = None,
    ):
        self.scene = scene
        self.anchor = anchor if anchor is not None else scene.center
        self.store = store
        self.config = config or ComposerConfig()
        self.placements: list[TokenPlacement] = []

    def _source_key(self, entry: MonsterEntry) -> str:
        return f"{entry.source_ref}.{entry.id}" if entry.source_ref else entry.id

    def _import_actor(self, entry: MonsterEntry) -> str:
        """Return the world actor id for an entry, importing it if needed."""
        if self.store is None:
            return entry.id

        source_key = self._source_key(entry)
        for actor in self.store.list("Actor"):
            if actor.flags.get(MODULE_ID, {}).get("source_id") == source_key:
                return actor.id

        actor = self.store.create("Actor", {
            "name": entry.name,
            "type": "npc",
            "level": entry.level,
            "traits": list(entry.traits),
            "rarity": entry.rarity.value,
            "flags": {MODULE_ID: {"source_id": source_key}},
        })
        logger.debug(f"Imported actor {entry.name} ({actor.id})")
        return actor.id

    def _persist_scene(self) -> None:
        if self.store is None:
            return
        if self.scene.id is not None:
            document = self.store.get(self.scene.id)
        else:
            document = self.store.find_by_name("Scene", self.scene.name)
        if document is None or document.doc_type != "Scene":
            raise DocumentStoreError(f"Scene '{self.scene.name}' not found")
        self.store.update(document.model_copy(update={"data": scene_document_data(self.scene)}))

    async def place(self, entry: MonsterEntry, spawn_index: int) -> bool:
        try:
            actor_id = self._import_actor(entry)
        except (DocumentStoreError, ValidationError) as e:
            logger.error(f"Failed to import actor {entry.name}: {e}")
            return False

        x, y = spawn_position(spawn_index, self.anchor, self.scene.grid, self.config)
        token = TokenPlacement(actor_id=actor_id, entry_id=entry.id, name=entry.name, x=x, y=y)
        self.scene.tokens.append(token)

        try:
            self._persist_scene()
        except DocumentStoreError as e:
            self.scene.tokens.pop()
            logger.error(f"Failed to place token for {entry.name} on '{self.scene.name}': {e}")
            return False

        self.placements.append(token)
        return True
