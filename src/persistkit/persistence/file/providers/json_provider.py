"""JSON file format: an indented array with one object per entity."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from persistkit.core.entity import EntityT, entities_to_json
from persistkit.persistence.file.registrar import FileProviderRegistrar
from persistkit.persistence.file.serializer import Serializer


class JsonSerializer(Serializer[EntityT]):
    """Object keys match field names; they are matched case-insensitively on read."""

    file_extension = ".json"

    def __init__(self, entity_type: type[EntityT], *, indent: int | None = 2) -> None:
        super().__init__(entity_type)
        self._indent = indent

    def serialize(self, entities: Iterable[EntityT]) -> str:
        if entities is None:
            raise ValueError("entities must not be None")
        return entities_to_json(self.entity_type, entities, indent=self._indent)

    def _parse(self, content: str) -> List[Mapping[str, Any]]:
        data = json.loads(content)
        if not isinstance(data, list):
            raise ValueError(f"expected a JSON array, found {type(data).__name__}")
        for item in data:
            if not isinstance(item, dict):
                raise ValueError(f"expected JSON objects in the array, found {type(item).__name__}")
        return data


class JsonFileProviderRegistrar(FileProviderRegistrar):
    """Registers JSON as a file storage provider."""

    @property
    def provider_name(self) -> str:
        return "Json"

    @property
    def file_extension(self) -> str:
        return ".json"

    def create_serializer(self, entity_type: type[EntityT]) -> JsonSerializer[EntityT]:
        return JsonSerializer(entity_type)
