"""
Candidate providers: where monster index entries come from.

A provider returns a snapshot of every candidate it knows about; the composer
filters and selects from that snapshot without going back to the provider.

Pack files are JSON or YAML compendium indexes:

```json
{
  "name": "Monster Core",
  "entries": [
    {"_id": "abc123", "name": "Goblin Warrior", "type": "npc", "level": -1,
     "traits": ["goblin", "humanoid"], "rarity": "common"},
    {"_id": "def456", "name": "Imp", "type": "npc",
     "system": {"details": {"level": {"value": 1}},
                "traits": {"value": ["devil", "fiend"], "rarity": "common"}}}
  ]
}
```

Both the flat layout and the host's nested ``system`` layout are accepted.
Only ``npc`` entries (or entries without a type) become candidates.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml
from pydantic import ValidationError

from .models import MonsterEntry


logger = logging.getLogger("vtt-encounters")


class CandidateProviderError(Exception):
    """Error loading or parsing a candidate pack."""
    pass


class CandidateProvider(ABC):
    """Source of monster index entries."""

    @abstractmethod
    def get_candidates(self) -> list[MonsterEntry]:
        """Return a snapshot of all known candidates."""
        ...


class StaticCandidateProvider(CandidateProvider):
    """Provider over a fixed, in-memory list of entries."""

    def __init__(self, entries: Iterable[MonsterEntry]):
        self._entries = tuple(entries)

    def get_candidates(self) -> list[MonsterEntry]:
        return list(self._entries)


def _nested(data: dict[str, Any], *keys: str) -> Any:
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def parse_index_entry(item: dict[str, Any], pack_key: str) -> MonsterEntry | None:
    """Convert one raw index entry into a MonsterEntry.

    Returns:
        The entry, or None if it is not an npc.

    Raises:
        ValidationError: If required fields are missing or malformed.
    """
    entry_type = item.get("type", "npc")
    if entry_type != "npc":
        return None

    level = item.get("level")
    if level is None:
        level = _nested(item, "system", "details", "level", "value")

    traits = item.get("traits")
    if traits is None:
        traits = _nested(item, "system", "traits", "value")

    rarity = item.get("rarity")
    if rarity is None:
        rarity = _nested(item, "system", "traits", "rarity")

    return MonsterEntry(
        id=str(item.get("_id") or item.get("id") or ""),
        name=item.get("name", ""),
        level=level,
        traits=traits,
        rarity=rarity,
        source_ref=pack_key,
    )


class PackCandidateProvider(CandidateProvider):
    """Provider reading compendium index packs from JSON or YAML files.

    Packs are loaded lazily on the first ``get_candidates`` call and cached.
    Pack files that do not exist are skipped with a warning.
    """

    SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

    def __init__(self, paths: Sequence[Path | str], pack_keys: Sequence[str] | None = None):
        """
        Args:
            paths: Pack files, in query order.
            pack_keys: Optional explicit pack keys, one per path. When omitted
                the key is derived from the file name ("monster_core.json" ->
                "monster-core").
        """
        self.paths = [Path(p) for p in paths]
        if pack_keys is not None and len(pack_keys) != len(self.paths):
            raise ValueError("pack_keys must have one key per path")
        self.pack_keys = list(pack_keys) if pack_keys is not None else [
            p.stem.replace("_", "-").lower() for p in self.paths
        ]
        self._entries: list[MonsterEntry] | None = None

    def _read_pack(self, path: Path) -> dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise CandidateProviderError(
                f"Unsupported pack format: {suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_EXTENSIONS))}"
            )

        try:
            raw_content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise CandidateProviderError(f"Failed to read pack {path}: {e}") from e

        try:
            if suffix == ".json":
                data = json.loads(raw_content)
            else:
                data = yaml.safe_load(raw_content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CandidateProviderError(f"Failed to parse {suffix} pack {path}: {e}") from e

        if isinstance(data, list):
            data = {"entries": data}
        if not isinstance(data, dict):
            raise CandidateProviderError(f"Pack {path} must be an object or a list of entries")
        return data

    def load(self) -> list[MonsterEntry]:
        """(Re)load every pack and return the combined entries."""
        entries: list[MonsterEntry] = []

        for path, pack_key in zip(self.paths, self.pack_keys):
            if not path.exists():
                logger.warning(f"Pack not found, skipping: {path}")
                continue

            data = self._read_pack(path)
            loaded = 0
            for item in data.get("entries", []):
                if not isinstance(item, dict):
                    logger.warning(f"Skipping non-object entry in {path}")
                    continue
                try:
                    entry = parse_index_entry(item, pack_key)
                except ValidationError as e:
                    logger.warning(f"Invalid entry '{item.get('name', '?')}' in {path}: {e}")
                    continue
                if entry is not None:
                    entries.append(entry)
                    loaded += 1

            logger.info(f"Loaded pack '{data.get('name', pack_key)}' from {path}: {loaded} candidates")

        self._entries = entries
        return list(entries)

    def get_candidates(self) -> list[MonsterEntry]:
        if self._entries is None:
            return self.load()
        return list(self._entries)
