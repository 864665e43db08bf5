"""File-backed persistence: serializers, registrars and the file data store."""

from persistkit.persistence.file.registrar import FileProviderRegistrar
from persistkit.persistence.file.serializer import Serializer
from persistkit.persistence.file.store import FileDataStore

__all__ = ["FileDataStore", "FileProviderRegistrar", "Serializer"]
