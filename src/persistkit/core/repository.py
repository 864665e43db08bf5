"""In-memory entity collection backed by a data store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic, List, Sequence

from persistkit.core.entity import EntityT
from persistkit.core.result import OperationResult

if TYPE_CHECKING:
    from persistkit.persistence.base import DataStore

LOGGER = logging.getLogger(__name__)


class Repository(Generic[EntityT]):
    """Snapshot-based repository for one entity type.

    The first read or mutation loads the whole collection from the data store
    once. ``add``, ``update`` and ``delete`` change only the in-memory
    snapshot and report validation problems as a failed
    :class:`OperationResult`; ``save`` writes the snapshot back in one call.
    Storage failures propagate as :class:`~persistkit.core.errors.DataStoreError`.
    """

    def __init__(self, data_store: "DataStore[EntityT]", *, entity_type: type[EntityT] | None = None) -> None:
        if data_store is None:
            raise ValueError("Repository requires a data store")
        self._data_store = data_store
        self.entity_type = entity_type or data_store.entity_type
        self._entities: List[EntityT] = []
        self._loaded = False

    @property
    def data_store(self) -> "DataStore[EntityT]":
        return self._data_store

    @property
    def entities(self) -> Sequence[EntityT]:
        """Read-only view of the current snapshot (empty until first load)."""

        return tuple(self._entities)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def get_all(self) -> List[EntityT]:
        await self._ensure_loaded()
        return list(self._entities)

    async def get_by_id(self, entity_id: int) -> EntityT | None:
        await self._ensure_loaded()
        return next((entity for entity in self._entities if entity.id == entity_id), None)

    async def add(self, entity: EntityT | None) -> OperationResult:
        if entity is None:
            return OperationResult.fail("Entity cannot be null.")
        await self._ensure_loaded()

        if entity.id != 0 and any(existing.id == entity.id for existing in self._entities):
            return OperationResult.fail(f"{self._type_name} with Id {entity.id} already exists.")
        if entity.id == 0:
            entity.id = max((existing.id for existing in self._entities), default=0) + 1

        self._entities.append(entity)
        return OperationResult.ok()

    async def update(self, entity: EntityT | None) -> OperationResult:
        if entity is None:
            return OperationResult.fail("Entity cannot be null.")
        await self._ensure_loaded()

        for index, existing in enumerate(self._entities):
            if existing.id == entity.id:
                self._entities[index] = entity
                return OperationResult.ok()
        return OperationResult.fail(f"{self._type_name} with Id {entity.id} was not found.")

    async def delete(self, entity: EntityT | None) -> OperationResult:
        if entity is None:
            return OperationResult.fail("Entity cannot be null.")
        await self._ensure_loaded()

        remaining = [existing for existing in self._entities if existing.id != entity.id]
        if len(remaining) == len(self._entities):
            return OperationResult.fail(f"{self._type_name} with Id {entity.id} was not found.")
        self._entities = remaining
        return OperationResult.ok()

    async def save(self) -> int:
        """Persist the snapshot and return how many entities were written.

        An untouched repository loads first, so saving it rewrites the stored
        collection unchanged instead of emptying it.
        """

        await self._ensure_loaded()
        return await self._data_store.save(self._entities)

    async def reload(self) -> None:
        """Discard unsaved changes and reload the snapshot from the data store."""

        self._entities = list(await self._data_store.load())
        self._loaded = True
        LOGGER.debug("Loaded %d %s entities", len(self._entities), self._type_name)

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.reload()

    @property
    def _type_name(self) -> str:
        return self.entity_type.__name__


__all__ = ["Repository"]
