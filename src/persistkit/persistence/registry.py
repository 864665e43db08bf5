"""Explicit name-to-registrar table used by storage selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterable, Iterator, List, Protocol, TypeVar

from persistkit.core.errors import StorageConfigurationError

LOGGER = logging.getLogger(__name__)


class NamedRegistrar(Protocol):
    @property
    def provider_name(self) -> str:
        ...


R = TypeVar("R", bound=NamedRegistrar)


@dataclass
class ProviderRegistry(Generic[R]):
    """Registrars keyed by case-insensitive provider name.

    Typical usage:
        registry = ProviderRegistry[FileProviderRegistrar](kind="file")
        registry.register_all(discover_registrars(FileProviderRegistrar, pattern))
        registrar = registry.resolve(settings.storage.provider)

    The first registrar registered under a name wins; later duplicates are
    logged and ignored.
    """

    kind: str = "storage"
    _items: Dict[str, R] = field(default_factory=dict)

    def register(self, registrar: R) -> R:
        key = registrar.provider_name.strip().lower()
        existing = self._items.get(key)
        if existing is not None:
            if existing is not registrar:
                LOGGER.warning(
                    "Ignoring duplicate %s provider %r from %s; already registered by %s",
                    self.kind,
                    registrar.provider_name,
                    type(registrar).__qualname__,
                    type(existing).__qualname__,
                )
            return existing
        self._items[key] = registrar
        return registrar

    def register_all(self, registrars: Iterable[R]) -> "ProviderRegistry[R]":
        for registrar in registrars:
            self.register(registrar)
        return self

    def resolve(self, name: str | None) -> R:
        """Return the registrar for ``name``.

        Raises:
            StorageConfigurationError: If no registrar matches; the message
                lists the provider names that were found.
        """

        key = (name or "").strip().lower()
        registrar = self._items.get(key)
        if registrar is None:
            available = ", ".join(self.names()) or "none"
            raise StorageConfigurationError(
                f"No {self.kind} provider registrar found for '{name}'. Available: {available}."
            )
        return registrar

    def try_resolve(self, name: str | None) -> R | None:
        return self._items.get((name or "").strip().lower())

    def names(self) -> List[str]:
        """Registered provider names, in their declared spelling and registration order."""

        return [registrar.provider_name for registrar in self._items.values()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._items

    def __iter__(self) -> Iterator[R]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["ProviderRegistry"]
