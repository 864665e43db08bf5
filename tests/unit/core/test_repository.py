"""Unit tests for the snapshot repository."""

from __future__ import annotations

from decimal import Decimal
from typing import List

import pytest

from persistkit.catalog.models import Product
from persistkit.core.repository import Repository
from persistkit.persistence.base import DataStore
from persistkit.persistence.file.providers.json_provider import JsonSerializer
from persistkit.persistence.file.store import FileDataStore


class MemoryDataStore(DataStore[Product]):
    """Keeps saved snapshots in memory and counts loads."""

    def __init__(self, initial: List[Product] | None = None) -> None:
        super().__init__(Product)
        self.rows = list(initial or [])
        self.load_calls = 0
        self.saved: List[List[Product]] = []

    def _load_sync(self) -> List[Product]:
        self.load_calls += 1
        return list(self.rows)

    def _save_sync(self, entities: List[Product]) -> int:
        self.rows = list(entities)
        self.saved.append(list(entities))
        return len(entities)


@pytest.mark.anyio
async def test_first_access_loads_once() -> None:
    store = MemoryDataStore([Product(id=1, name="Laptop")])
    repository = Repository(store)

    assert repository.entities == ()
    assert [p.name for p in await repository.get_all()] == ["Laptop"]
    assert await repository.get_by_id(1) is not None
    assert await repository.get_by_id(99) is None
    assert store.load_calls == 1


@pytest.mark.anyio
async def test_add_assigns_next_id() -> None:
    repository = Repository(MemoryDataStore([Product(id=4, name="Desk")]))

    product = Product(name="Chair")
    result = await repository.add(product)

    assert result
    assert product.id == 5


@pytest.mark.anyio
async def test_add_assigns_one_to_empty_repository() -> None:
    repository = Repository(MemoryDataStore())
    product = Product(name="First")

    assert await repository.add(product)
    assert product.id == 1


@pytest.mark.anyio
async def test_add_rejects_duplicate_and_none() -> None:
    repository = Repository(MemoryDataStore([Product(id=2, name="Desk")]))

    duplicate = await repository.add(Product(id=2, name="Other"))
    assert not duplicate
    assert duplicate.error_message == "Product with Id 2 already exists."

    missing = await repository.add(None)
    assert not missing
    assert missing.error_message == "Entity cannot be null."
    assert len(repository.entities) == 1


@pytest.mark.anyio
async def test_update_and_delete_report_unknown_ids() -> None:
    repository = Repository(MemoryDataStore([Product(id=1, name="Laptop")]))

    update = await repository.update(Product(id=42))
    delete = await repository.delete(Product(id=42))

    assert update.error_message == "Product with Id 42 was not found."
    assert delete.error_message == "Product with Id 42 was not found."


@pytest.mark.anyio
async def test_update_replaces_entity_in_place() -> None:
    repository = Repository(MemoryDataStore([Product(id=1, name="Laptop"), Product(id=2, name="Mouse")]))

    assert await repository.update(Product(id=1, name="Laptop Pro", price=Decimal("1999.00")))

    names = [p.name for p in await repository.get_all()]
    assert names == ["Laptop Pro", "Mouse"]


@pytest.mark.anyio
async def test_mutations_do_not_touch_store_until_save() -> None:
    store = MemoryDataStore([Product(id=1, name="Laptop")])
    repository = Repository(store)

    await repository.add(Product(name="Mouse"))
    assert store.saved == []

    assert await repository.save() == 2
    assert [p.name for p in store.rows] == ["Laptop", "Mouse"]


@pytest.mark.anyio
async def test_reload_discards_unsaved_changes() -> None:
    store = MemoryDataStore([Product(id=1, name="Laptop")])
    repository = Repository(store)

    await repository.add(Product(name="Mouse"))
    await repository.reload()

    assert [p.name for p in repository.entities] == ["Laptop"]
    assert store.load_calls == 2


@pytest.mark.anyio
async def test_delete_then_save_survives_reload(tmp_path) -> None:
    path = tmp_path / "Product.json"
    store = FileDataStore(path, JsonSerializer(Product))
    await store.save([Product(id=1, name="Laptop"), Product(id=2, name="Mouse")])

    repository = Repository(store)
    laptop = await repository.get_by_id(1)
    assert await repository.delete(laptop)
    assert await repository.save() == 1

    fresh = Repository(FileDataStore(path, JsonSerializer(Product)))
    assert [(p.id, p.name) for p in await fresh.get_all()] == [(2, "Mouse")]


def test_repository_requires_store() -> None:
    with pytest.raises(ValueError):
        Repository(None)  # type: ignore[arg-type]
