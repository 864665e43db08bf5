"""Data store that keeps a whole entity collection in a single file."""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import List

from persistkit.core.entity import EntityT
from persistkit.core.errors import DataStoreError, FailureKind
from persistkit.observability import Observability
from persistkit.persistence.base import LocatableDataStore
from persistkit.persistence.file.serializer import Serializer

LOGGER = logging.getLogger(__name__)


class FileDataStore(LocatableDataStore[EntityT]):
    """Persist an entity collection to one file using an injected serializer.

    ``save`` always rewrites the entire file. The new content is written to a
    temporary file in the same directory and moved over the target with
    ``os.replace`` so readers never observe a half-written file.
    """

    def __init__(
        self,
        file_path: str | Path,
        serializer: Serializer[EntityT],
        *,
        entity_type: type[EntityT] | None = None,
        observability: Observability | None = None,
    ) -> None:
        if not file_path:
            raise ValueError("FileDataStore requires a file path")
        if serializer is None:
            raise ValueError("FileDataStore requires a serializer")
        super().__init__(entity_type or serializer.entity_type, observability=observability)
        self._path = Path(file_path)
        self._serializer = serializer

    @property
    def path(self) -> Path:
        return self._path

    @property
    def serializer(self) -> Serializer[EntityT]:
        return self._serializer

    @property
    def location(self) -> str:
        return str(self._path)

    @property
    def description(self) -> str:
        return f"FileDataStore({self._path.name})"

    def _load_sync(self) -> List[EntityT]:
        try:
            if not self._path.exists():
                return []
            content = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DataStoreError(
                f"Could not read data file '{self._path}': {exc.strerror or exc}.",
                kind=FailureKind.FILE_ACCESS,
                operation="load",
            ) from exc
        return self._serializer.deserialize(content)

    def _save_sync(self, entities: List[EntityT]) -> int:
        content = self._serializer.serialize(entities)
        tmp_path = self._path.with_name(f".{self._path.name}.{uuid.uuid4().hex}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise DataStoreError(
                f"Could not write data file '{self._path}': {exc.strerror or exc}.",
                kind=FailureKind.FILE_ACCESS,
                operation="save",
            ) from exc
        LOGGER.debug("Wrote %d %s entities to %s", len(entities), self.entity_type.__name__, self._path)
        return len(entities)


__all__ = ["FileDataStore"]
