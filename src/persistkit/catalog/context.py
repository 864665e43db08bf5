"""Registers the catalog schema with the database storage backend."""

from __future__ import annotations

import logging

from persistkit.catalog.schema import ENTITY_TABLES, METADATA
from persistkit.persistence.database.context import EngineOptions, SqlAlchemyContextFactory
from persistkit.persistence.database.registrar import ConfigureEngine, DbContextRegistrar, StorageBindings

LOGGER = logging.getLogger(__name__)


class CatalogContextRegistrar(DbContextRegistrar):
    """Binds a context factory over :data:`~persistkit.catalog.schema.METADATA`.

    Missing catalog tables are created on first connection.
    """

    def register_db_context(self, bindings: StorageBindings, configure: ConfigureEngine) -> None:
        options = EngineOptions()
        configure(options)
        bindings.context_factory = SqlAlchemyContextFactory(options, METADATA, ENTITY_TABLES)
        LOGGER.debug("Registered catalog context for %s", options.backend_name or "unconfigured engine")


__all__ = ["CatalogContextRegistrar"]
