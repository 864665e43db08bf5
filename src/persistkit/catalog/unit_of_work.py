"""Unit of work over the catalog repositories."""

from __future__ import annotations

from persistkit.catalog.models import Product
from persistkit.core.repository import Repository
from persistkit.core.unit_of_work import UnitOfWork


class CatalogUnitOfWork(UnitOfWork):
    def __init__(self, products: Repository[Product]) -> None:
        super().__init__({Product: products})

    @property
    def products(self) -> Repository[Product]:
        return self.repository(Product)


__all__ = ["CatalogUnitOfWork"]
