"""Catalog business layer: the ``Product`` entity, its schema and unit of work."""

from persistkit.catalog.bootstrap import build_unit_of_work
from persistkit.catalog.context import CatalogContextRegistrar
from persistkit.catalog.models import Product
from persistkit.catalog.unit_of_work import CatalogUnitOfWork

__all__ = ["CatalogContextRegistrar", "CatalogUnitOfWork", "Product", "build_unit_of_work"]
