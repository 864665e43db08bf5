"""Registrar contract for file storage formats."""

from __future__ import annotations

from abc import ABC, abstractmethod

from persistkit.core.entity import EntityT
from persistkit.persistence.file.serializer import Serializer


class FileProviderRegistrar(ABC):
    """Declares one file format: its provider name, extension and serializer.

    Concrete subclasses must be constructible without arguments so the
    discovery engine can instantiate them.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """str: Name matched case-insensitively against ``storage.provider``."""

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """str: Extension including the leading dot, for example ``.json``."""

    @abstractmethod
    def create_serializer(self, entity_type: type[EntityT]) -> Serializer[EntityT]:
        """Build a serializer bound to ``entity_type``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_name={self.provider_name!r})"


__all__ = ["FileProviderRegistrar"]
