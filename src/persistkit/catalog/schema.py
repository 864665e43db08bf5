"""SQLAlchemy tables for the catalog entities."""

from __future__ import annotations

import sqlalchemy as sa

from persistkit.catalog.models import Product

METADATA = sa.MetaData()

products = sa.Table(
    "Product",
    METADATA,
    # Ids are assigned by the repository, never by the database.
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
    sa.Column("code", sa.String(length=20), nullable=False),
    sa.Column("name", sa.String(length=100), nullable=False),
    sa.Column("category", sa.String(length=50), nullable=False),
    sa.Column("price", sa.Numeric(10, 2), nullable=False),
    sa.Column("stock", sa.Integer(), nullable=False),
)

ENTITY_TABLES: dict[type, sa.Table] = {Product: products}


__all__ = ["ENTITY_TABLES", "METADATA", "products"]
