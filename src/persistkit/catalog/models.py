"""Catalog domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(slots=True)
class Product:
    """A sellable catalog item.

    ``id`` is 0 until the repository assigns one on insert.
    """

    id: int = 0
    code: str = ""
    name: str = ""
    category: str = ""
    price: Decimal = Decimal("0")
    stock: int = 0


__all__ = ["Product"]
