"""Data store backed by one relational table per entity type."""

from __future__ import annotations

import logging
from typing import List

import sqlalchemy as sa

from persistkit.core.entity import EntityT, entity_from_mapping, entity_to_mapping
from persistkit.observability import Observability
from persistkit.persistence.base import DataStore
from persistkit.persistence.database.context import DbContextFactory
from persistkit.persistence.database.errors import translate_backend_error

LOGGER = logging.getLogger(__name__)


class DbDataStore(DataStore[EntityT]):
    """Load and overwrite an entity table through short-lived database contexts.

    ``save`` mirrors the file store: every existing row is deleted and the
    snapshot inserted inside a single transaction, so a failure leaves the
    table untouched.
    """

    def __init__(
        self,
        entity_type: type[EntityT],
        context_factory: DbContextFactory,
        *,
        observability: Observability | None = None,
    ) -> None:
        if context_factory is None:
            raise ValueError("DbDataStore requires a context factory")
        super().__init__(entity_type, observability=observability)
        self._context_factory = context_factory

    @property
    def context_factory(self) -> DbContextFactory:
        return self._context_factory

    @property
    def description(self) -> str:
        return f"DbDataStore({self.entity_type.__name__})"

    def _load_sync(self) -> List[EntityT]:
        try:
            with self._context_factory.create_context() as context:
                table = context.table_for(self.entity_type)
                statement = sa.select(table).order_by(*table.primary_key.columns)
                rows = context.session.execute(statement).mappings().all()
                return [entity_from_mapping(self.entity_type, row) for row in rows]
        except sa.exc.SQLAlchemyError as exc:
            raise translate_backend_error(exc, operation="load") from exc

    def _save_sync(self, entities: List[EntityT]) -> int:
        try:
            with self._context_factory.create_context() as context:
                table = context.table_for(self.entity_type)
                columns = set(table.c.keys())
                rows = [
                    {name: value for name, value in entity_to_mapping(entity).items() if name in columns}
                    for entity in entities
                ]
                with context.session.begin():
                    context.session.execute(sa.delete(table))
                    if rows:
                        context.session.execute(sa.insert(table), rows)
        except sa.exc.SQLAlchemyError as exc:
            raise translate_backend_error(exc, operation="save") from exc
        LOGGER.debug("Replaced %s rows with %d entities", self.entity_type.__name__, len(entities))
        return len(entities)


__all__ = ["DbDataStore"]
