"""Relational persistence through SQLAlchemy."""

from persistkit.persistence.database.context import DbContext, DbContextFactory, EngineOptions, SqlAlchemyContextFactory
from persistkit.persistence.database.errors import translate_backend_error
from persistkit.persistence.database.registrar import DbContextRegistrar, DbProviderRegistrar, StorageBindings
from persistkit.persistence.database.store import DbDataStore

__all__ = [
    "DbContext",
    "DbContextFactory",
    "DbContextRegistrar",
    "DbDataStore",
    "DbProviderRegistrar",
    "EngineOptions",
    "SqlAlchemyContextFactory",
    "StorageBindings",
    "translate_backend_error",
]
