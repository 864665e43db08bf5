"""Wire the catalog unit of work from configuration."""

from __future__ import annotations

from persistkit.catalog.models import Product
from persistkit.catalog.unit_of_work import CatalogUnitOfWork
from persistkit.core.repository import Repository
from persistkit.persistence.database.registrar import StorageBindings
from persistkit.services.factories import build_data_store
from persistkit.settings import Settings, StorageSettings, get_settings


def build_unit_of_work(
    settings: Settings | None = None,
    *,
    storage: StorageSettings | None = None,
    bindings: StorageBindings | None = None,
) -> CatalogUnitOfWork:
    """Return a :class:`CatalogUnitOfWork` over the configured storage.

    Raises:
        StorageConfigurationError: If the storage settings cannot be wired.
    """

    resolved = settings or get_settings()
    bindings = bindings if bindings is not None else StorageBindings()
    store = build_data_store(Product, settings=resolved, storage=storage, bindings=bindings)
    return CatalogUnitOfWork(Repository(store, entity_type=Product))


__all__ = ["build_unit_of_work"]
