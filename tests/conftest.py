"""Shared fixtures for the persistkit test-suite."""

from __future__ import annotations

from typing import Callable

import pytest

from persistkit.observability import reset_observability_cache
from persistkit.settings import Settings, StorageSettings


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_observability() -> None:
    reset_observability_cache()


@pytest.fixture
def make_settings(tmp_path) -> Callable[..., Settings]:
    """Build isolated settings whose data directory lives under ``tmp_path``.

    Keyword arguments populate the ``[storage]`` section.
    """

    def _factory(**storage: object) -> Settings:
        return Settings(
            data_dir=tmp_path / "Data",
            storage=StorageSettings(**storage),
            connection_strings={"Catalog": f"Data Source={tmp_path / 'catalog.db'}"},
        )

    return _factory
