"""Coordinates the repositories that make up one working session."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping

from persistkit.core.entity import EntityT
from persistkit.core.repository import Repository

LOGGER = logging.getLogger(__name__)


class UnitOfWork:
    """Groups one :class:`Repository` per entity type behind a single ``save_changes``.

    Usable as an async context manager; once closed, every accessor raises
    ``RuntimeError``.
    """

    def __init__(self, repositories: Mapping[type, Repository] | Iterable[Repository]) -> None:
        if isinstance(repositories, Mapping):
            items = dict(repositories)
        else:
            items = {repository.entity_type: repository for repository in repositories}
        if not items:
            raise ValueError("UnitOfWork requires at least one repository")
        self._repositories: Dict[type, Repository] = items
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def entity_types(self) -> list[type]:
        return list(self._repositories)

    def repository(self, entity_type: type[EntityT]) -> Repository[EntityT]:
        """Return the repository managing ``entity_type``.

        Raises:
            KeyError: If this unit of work does not manage ``entity_type``.
        """

        self._check_open()
        try:
            return self._repositories[entity_type]
        except KeyError:
            raise KeyError(f"No repository is registered for {entity_type.__name__}") from None

    async def save_changes(self) -> int:
        """Save every repository and return the total number of entities persisted."""

        self._check_open()
        total = 0
        for entity_type, repository in self._repositories.items():
            count = await repository.save()
            LOGGER.debug("Saved %d %s entities", count, entity_type.__name__)
            total += count
        return total

    def close(self) -> None:
        self._closed = True

    async def __aenter__(self) -> "UnitOfWork":
        self._check_open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"{type(self).__name__} has been closed")


__all__ = ["UnitOfWork"]
