"""Registrar contracts for database backends and for the schema-owning context."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict

from persistkit.core.errors import StorageConfigurationError
from persistkit.persistence.base import DataStore
from persistkit.persistence.database.context import DbContextFactory, EngineOptions

ConfigureEngine = Callable[[EngineOptions], None]


class DbProviderRegistrar(ABC):
    """Declares one database backend and how it wires an engine.

    Concrete subclasses must be constructible without arguments so the
    discovery engine can instantiate them.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """str: Name matched case-insensitively against ``storage.provider``."""

    @abstractmethod
    def configure(self, options: EngineOptions, connection_string: str) -> None:
        """Apply backend-specific settings for ``connection_string`` to ``options``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_name={self.provider_name!r})"


@dataclass
class StorageBindings:
    """Wiring produced while selecting storage.

    Holds the context factory registered by a :class:`DbContextRegistrar` and
    the data store bound to each entity type.
    """

    context_factory: DbContextFactory | None = None
    data_stores: Dict[type, DataStore] = field(default_factory=dict)

    def bind_data_store(self, entity_type: type, store: DataStore) -> None:
        self.data_stores[entity_type] = store

    def data_store_for(self, entity_type: type) -> DataStore:
        try:
            return self.data_stores[entity_type]
        except KeyError:
            raise StorageConfigurationError(
                f"No data store is bound for entity type '{entity_type.__name__}'."
            ) from None

    def require_context_factory(self) -> DbContextFactory:
        if self.context_factory is None:
            raise StorageConfigurationError("No database context has been registered.")
        return self.context_factory


class DbContextRegistrar(ABC):
    """Registers the concrete schema and its context factory.

    Implemented by the business layer that owns the tables; discovered at
    runtime so storage selection never imports a concrete schema.
    """

    @abstractmethod
    def register_db_context(self, bindings: StorageBindings, configure: ConfigureEngine) -> None:
        """Bind a context factory into ``bindings``, letting ``configure`` set up the engine."""


__all__ = ["ConfigureEngine", "DbContextRegistrar", "DbProviderRegistrar", "StorageBindings"]
