"""Serializer contract for file-backed data stores."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Mapping

from pydantic import ValidationError

from persistkit.core.entity import EntityT, entity_fields, entity_from_mapping, normalize_keys

LOGGER = logging.getLogger(__name__)


class Serializer(ABC, Generic[EntityT]):
    """Convert an ordered entity collection to and from one text encoding.

    ``deserialize`` never raises on bad input: empty or whitespace-only text,
    and text that cannot be parsed or coerced, both yield an empty list.
    """

    file_extension: str = ""

    def __init__(self, entity_type: type[EntityT]) -> None:
        self.entity_type = entity_type

    @abstractmethod
    def serialize(self, entities: Iterable[EntityT]) -> str:
        """Encode ``entities`` as text."""

    def deserialize(self, content: str | None) -> List[EntityT]:
        if content is None or not content.strip():
            return []
        try:
            rows = self._parse(content)
            return [entity_from_mapping(self.entity_type, row) for row in rows]
        except (ValueError, TypeError, ValidationError) as exc:
            LOGGER.warning(
                "Discarding malformed %s content for %s: %s",
                type(self).__name__,
                self.entity_type.__name__,
                exc,
            )
            return []

    @abstractmethod
    def _parse(self, content: str) -> List[Mapping[str, Any]]:
        """Split ``content`` into one field mapping per entity.

        Implementations raise ``ValueError`` (or a subclass) on malformed input.
        """

    def _fill_blank_cells(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Drop empty cells of non-text fields that have a default so the default applies.

        Text fields keep an empty string as written; only an absent column or element
        falls back to their default.
        """

        defaults = {
            field.name for field in entity_fields(self.entity_type) if field.has_default and not field.holds_text
        }
        normalized = normalize_keys(self.entity_type, row)
        return {name: value for name, value in normalized.items() if not (value == "" and name in defaults)}


__all__ = ["Serializer"]
