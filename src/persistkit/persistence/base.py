"""Whole-collection load/save contract shared by every backing medium."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from functools import partial
from typing import Callable, Generic, Iterable, List, TypeVar

from persistkit.core.entity import EntityT
from persistkit.core.errors import DataStoreError, FailureKind
from persistkit.observability import Observability

LOGGER = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


class DataStore(ABC, Generic[EntityT]):
    """Load and save a complete snapshot of one entity collection.

    Each instance admits one operation at a time. Callers queue on an
    ``asyncio.Lock`` and the blocking work runs in a worker thread under a
    ``threading.Lock``, so a thread abandoned by a cancelled caller still
    finishes before the next operation starts.
    """

    def __init__(self, entity_type: type[EntityT], *, observability: Observability | None = None) -> None:
        if entity_type is None:
            raise ValueError("DataStore requires an entity type")
        self.entity_type = entity_type
        self._observability = observability
        self._lock = asyncio.Lock()
        self._io_lock = threading.Lock()

    async def load(self, *, timeout: float | None = None) -> List[EntityT]:
        """Return every stored entity; an untouched medium yields an empty list."""

        return await self._run_exclusive("load", self._load_sync, timeout=timeout)

    async def save(self, entities: Iterable[EntityT], *, timeout: float | None = None) -> int:
        """Replace the stored collection with ``entities`` and return how many were written.

        Raises:
            ValueError: If ``entities`` is ``None``; raised before any I/O.
            DataStoreError: If the backing medium rejects the write.
        """

        if entities is None:
            raise ValueError("entities must not be None")
        snapshot = list(entities)
        return await self._run_exclusive("save", partial(self._save_sync, snapshot), timeout=timeout)

    @property
    def description(self) -> str:
        """str: Short label used in logs."""

        return type(self).__name__

    @abstractmethod
    def _load_sync(self) -> List[EntityT]:
        """Blocking load; runs in a worker thread while the instance lock is held."""

    @abstractmethod
    def _save_sync(self, entities: List[EntityT]) -> int:
        """Blocking whole-collection overwrite; runs in a worker thread."""

    async def _run_exclusive(
        self,
        operation: str,
        func: Callable[[], ResultT],
        *,
        timeout: float | None,
    ) -> ResultT:
        started = time.perf_counter()
        tags = {"store": type(self).__name__, "entity": self.entity_type.__name__}
        try:
            async with asyncio.timeout(timeout):
                async with self._lock:
                    result = await asyncio.to_thread(self._guarded, operation, func)
        except TimeoutError as exc:
            self._record_failure(operation, tags)
            raise DataStoreError(
                f"{operation.capitalize()} of {self.entity_type.__name__} data timed out after {timeout} seconds. "
                "Please retry the operation.",
                kind=FailureKind.TIMEOUT,
                operation=operation,
            ) from exc
        except DataStoreError:
            self._record_failure(operation, tags)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        count = result if isinstance(result, int) else len(result)
        if self._observability is not None:
            self._observability.record_timing(f"datastore.{operation}.duration_ms", elapsed_ms, tags=tags)
            self._observability.emit_event(
                f"datastore.{operation}",
                store=self.description,
                entity=self.entity_type.__name__,
                count=count,
                duration_ms=round(elapsed_ms, 3),
            )
        else:
            LOGGER.debug("%s %s: %d %s in %.1f ms", self.description, operation, count, tags["entity"], elapsed_ms)
        return result

    def _guarded(self, operation: str, func: Callable[[], ResultT]) -> ResultT:
        with self._io_lock:
            try:
                return func()
            except DataStoreError:
                raise
            except Exception as exc:
                verb = "loading" if operation == "load" else "saving"
                raise DataStoreError(
                    f"An unexpected error occurred while {verb} data: {exc}",
                    kind=FailureKind.UNEXPECTED,
                    operation=operation,
                ) from exc

    def _record_failure(self, operation: str, tags: dict[str, str]) -> None:
        if self._observability is not None:
            self._observability.increment(f"datastore.{operation}.errors", tags=tags)


class LocatableDataStore(DataStore[EntityT]):
    """A data store that can report where its data lives (for example, a file path)."""

    @property
    @abstractmethod
    def location(self) -> str:
        """str: Human-readable storage location."""


__all__ = ["DataStore", "LocatableDataStore"]
