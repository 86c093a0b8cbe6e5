"""
Idempotent setup of the host resources the encounter generator relies on.

Creates the macro folder, the "Create Random Encounter" macro and the scene
folder random encounters are drawn from. Running it again changes nothing.
"""

from __future__ import annotations

import logging

from .store import Document, DocumentStore, DocumentStoreError

logger = logging.getLogger("vtt-encounters")

MODULE_ID = "vtt-encounters"

MACRO_FOLDER_NAME = "GM Encounter Macros"
MACRO_FOLDER_COLOR = "#9c0000"

SCENE_FOLDER_NAME = "Random Encounters"

RANDOM_ENCOUNTER_MACRO_NAME = "Create Random Encounter"
RANDOM_ENCOUNTER_MACRO_ICON = "icons/svg/d20.svg"
RANDOM_ENCOUNTER_MACRO_COMMAND = "generate_random_encounter"


def get_or_create_folder(
    store: DocumentStore,
    name: str,
    doc_type: str,
    color: str | None = None,
) -> Document | None:
    """Return the named folder, creating it at the top level if missing.

    Returns:
        The folder document, or None if creation failed.
    """
    folder = store.find_by_name("Folder", name)
    if folder is not None:
        return folder

    data = {"name": name, "type": doc_type, "parent": None}
    if color:
        data["color"] = color
    try:
        folder = store.create("Folder", data)
    except DocumentStoreError as e:
        logger.error(f"Failed to create {doc_type} folder '{name}': {e}")
        return None

    logger.info(f"Created {doc_type} folder: '{name}'")
    return folder


def ensure_macro(
    store: DocumentStore,
    name: str,
    icon: str,
    command: str,
    folder_id: str | None,
    is_gm: bool,
) -> Document | None:
    """Create a script macro unless one with the same name exists.

    Only GMs may create macros; for other users nothing is created.

    Returns:
        The existing or newly created macro, or None when nothing exists.
    """
    existing = store.find_by_name("Macro", name)
    if existing is not None:
        return existing

    if not is_gm:
        logger.warning(f"Cannot auto-create macro for non-GM user: {name}")
        return None

    try:
        macro = store.create("Macro", {
            "name": name,
            "type": "script",
            "img": icon,
            "command": command,
            "folder": folder_id,
            "flags": {MODULE_ID: {"is_module_macro": True}},
        })
    except DocumentStoreError as e:
        logger.error(f"Failed to create macro '{name}': {e}")
        return None

    logger.info(f"Created macro: {name}")
    return macro


def bootstrap(store: DocumentStore, is_gm: bool = True) -> None:
    """Ensure the macro folder, the encounter macro and the scene folder exist."""
    folder_id = None
    if is_gm:
        folder = get_or_create_folder(store, MACRO_FOLDER_NAME, "Macro", MACRO_FOLDER_COLOR)
        if folder is not None:
            folder_id = folder.id
        get_or_create_folder(store, SCENE_FOLDER_NAME, "Scene")

    ensure_macro(
        store,
        RANDOM_ENCOUNTER_MACRO_NAME,
        RANDOM_ENCOUNTER_MACRO_ICON,
        RANDOM_ENCOUNTER_MACRO_COMMAND,
        folder_id,
        is_gm,
    )
    logger.info("Encounter macros initialized")
