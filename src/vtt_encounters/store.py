"""
Document store for host-owned resources (folders, macros, scenes, actors).

The encounter workflow only needs name lookup, creation, update and listing.
Two implementations are provided: an in-memory store for tests and embedding,
and a JSON-file store that rewrites its file on every mutation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from shortuuid import random as shortuuid_random

logger = logging.getLogger("vtt-encounters")


class DocumentStoreError(Exception):
    """Error reading or writing the document store."""
    pass


class Document(BaseModel):
    """A named host document."""
    id: str = Field(default_factory=lambda: shortuuid_random(length=16))
    doc_type: str = Field(description="Document type: Folder, Macro, Scene, Actor, ...")
    name: str
    folder: str | None = Field(default=None, description="Id of the parent folder")
    data: dict[str, Any] = Field(default_factory=dict)
    flags: dict[str, Any] = Field(default_factory=dict)


class DocumentStore(ABC):
    """Abstract document store."""

    @abstractmethod
    def find_by_name(self, doc_type: str, name: str) -> Document | None:
        """Return the first document of the given type with this name."""
        ...

    @abstractmethod
    def get(self, doc_id: str) -> Document | None:
        """Return the document with this id, if any."""
        ...

    @abstractmethod
    def create(self, doc_type: str, data: dict[str, Any]) -> Document:
        """Create a document from ``data`` (``name`` required)."""
        ...

    @abstractmethod
    def update(self, document: Document) -> Document:
        """Replace a stored document by id."""
        ...

    @abstractmethod
    def list(self, doc_type: str, folder: str | None = None) -> list[Document]:
        """List documents of a type, optionally only those in a folder."""
        ...


class InMemoryDocumentStore(DocumentStore):
    """Document store kept in a dict keyed by document id."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def find_by_name(self, doc_type: str, name: str) -> Document | None:
        for doc in self._documents.values():
            if doc.doc_type == doc_type and doc.name == name:
                return doc
        return None

    def get(self, doc_id: str) -> Document | None:
        return self._documents.get(doc_id)

    def create(self, doc_type: str, data: dict[str, Any]) -> Document:
        if not data.get("name"):
            raise DocumentStoreError(f"Cannot create {doc_type} without a name")
        try:
            document = Document(
                doc_type=doc_type,
                name=data["name"],
                folder=data.get("folder"),
                data={k: v for k, v in data.items() if k not in ("name", "folder", "flags")},
                flags=data.get("flags", {}),
            )
        except ValidationError as e:
            raise DocumentStoreError(f"Invalid {doc_type} data: {e}") from e
        self._documents[document.id] = document
        try:
            self._changed()
        except DocumentStoreError:
            del self._documents[document.id]
            raise
        return document

    def update(self, document: Document) -> Document:
        if document.id not in self._documents:
            raise DocumentStoreError(f"{document.doc_type} '{document.name}' ({document.id}) not found")
        previous = self._documents[document.id]
        self._documents[document.id] = document
        try:
            self._changed()
        except DocumentStoreError:
            self._documents[document.id] = previous
            raise
        return document

    def list(self, doc_type: str, folder: str | None = None) -> list[Document]:
        return [
            doc for doc in self._documents.values()
            if doc.doc_type == doc_type and (folder is None or doc.folder == folder)
        ]

    def _changed(self) -> None:
        """Hook called after every mutation."""
        pass


class JsonDocumentStore(InMemoryDocumentStore):
    """Document store persisted to a single JSON file."""

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.debug(f"📂 No document store at {self.path}, starting empty")
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DocumentStoreError(f"Failed to read document store {self.path}: {e}") from e

        for item in raw.get("documents", []):
            try:
                document = Document.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping invalid document in {self.path}: {e}")
                continue
            self._documents[document.id] = document
        logger.debug(f"📂 Loaded {len(self._documents)} documents from {self.path}")

    def _changed(self) -> None:
        payload = {"documents": [doc.model_dump(mode="json") for doc in self._documents.values()]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        except OSError as e:
            raise DocumentStoreError(f"Failed to write document store {self.path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise DocumentStoreError(f"Failed to write document store {self.path}: {e}") from e
