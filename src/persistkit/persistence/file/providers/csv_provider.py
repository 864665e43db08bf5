"""CSV file format (RFC 4180).

The header row lists the readable and writable fields by name; each following
row is one entity. Cells containing commas, quotes or line breaks are quoted
and embedded quotes are doubled.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List, Mapping

from persistkit.core.entity import EntityT, entity_field_names, entity_to_mapping
from persistkit.persistence.file.registrar import FileProviderRegistrar
from persistkit.persistence.file.serializer import Serializer


class CsvSerializer(Serializer[EntityT]):
    file_extension = ".csv"

    def serialize(self, entities: Iterable[EntityT]) -> str:
        if entities is None:
            raise ValueError("entities must not be None")
        columns = entity_field_names(self.entity_type)
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
        writer.writerow(columns)
        for entity in entities:
            values = entity_to_mapping(entity, mode="json")
            writer.writerow(["" if values[name] is None else values[name] for name in columns])
        return buffer.getvalue()

    def _parse(self, content: str) -> List[Mapping[str, Any]]:
        reader = csv.reader(io.StringIO(content, newline=""), strict=True)
        try:
            header = next(reader)
        except StopIteration:
            return []
        except csv.Error as exc:
            raise ValueError(f"invalid CSV header: {exc}") from exc

        rows: List[Mapping[str, Any]] = []
        try:
            for record in reader:
                if not record or all(not cell.strip() for cell in record):
                    continue
                row = {header[index]: cell for index, cell in enumerate(record) if index < len(header)}
                rows.append(self._fill_blank_cells(row))
        except csv.Error as exc:
            raise ValueError(f"invalid CSV at line {reader.line_num}: {exc}") from exc
        return rows


class CsvFileProviderRegistrar(FileProviderRegistrar):
    """Registers CSV as a file storage provider."""

    @property
    def provider_name(self) -> str:
        return "Csv"

    @property
    def file_extension(self) -> str:
        return ".csv"

    def create_serializer(self, entity_type: type[EntityT]) -> CsvSerializer[EntityT]:
        return CsvSerializer(entity_type)
