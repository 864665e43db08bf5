"""XML file format.

The document root is ``ArrayOf{TypeName}`` and wraps one ``{TypeName}``
element per entity, with one child element per field::

    <ArrayOfProduct>
      <Product>
        <id>1</id>
        <name>Laptop</name>
      </Product>
    </ArrayOfProduct>

Fields whose value is ``None`` are omitted. Values holding characters XML 1.0
cannot carry are rejected; carriage returns are written as ``&#13;`` so they
survive end-of-line normalization on read.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any, Iterable, List, Mapping

from persistkit.core.entity import EntityT, entity_to_mapping
from persistkit.persistence.file.registrar import FileProviderRegistrar
from persistkit.persistence.file.serializer import Serializer

_INVALID_XML_CHARS = re.compile("[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


class XmlSerializer(Serializer[EntityT]):
    file_extension = ".xml"

    @property
    def root_tag(self) -> str:
        return f"ArrayOf{self.entity_type.__name__}"

    @property
    def item_tag(self) -> str:
        return self.entity_type.__name__

    def serialize(self, entities: Iterable[EntityT]) -> str:
        if entities is None:
            raise ValueError("entities must not be None")
        root = ET.Element(self.root_tag)
        for entity in entities:
            item = ET.SubElement(root, self.item_tag)
            for name, value in entity_to_mapping(entity, mode="json").items():
                if value is None:
                    continue
                child = ET.SubElement(item, name)
                child.text = self._checked_text(name, value)
        ET.indent(root)
        body = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'

    def _checked_text(self, name: str, value: Any) -> str:
        text = _to_text(value)
        invalid = _INVALID_XML_CHARS.search(text)
        if invalid:
            raise ValueError(
                f"{self.item_tag}.{name} contains {invalid.group()!r}, which cannot be written to XML"
            )
        return text

    def _parse(self, content: str) -> List[Mapping[str, Any]]:
        try:
            root = ET.fromstring(content.strip())
        except ET.ParseError as exc:
            raise ValueError(f"invalid XML: {exc}") from exc
        if root.tag.lower() != self.root_tag.lower():
            raise ValueError(f"expected root element <{self.root_tag}>, found <{root.tag}>")

        rows: List[Mapping[str, Any]] = []
        for item in root:
            if item.tag.lower() != self.item_tag.lower():
                continue
            row = {child.tag: (child.text or "") for child in item}
            rows.append(self._fill_blank_cells(row))
        return rows


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class XmlFileProviderRegistrar(FileProviderRegistrar):
    """Registers XML as a file storage provider."""

    @property
    def provider_name(self) -> str:
        return "Xml"

    @property
    def file_extension(self) -> str:
        return ".xml"

    def create_serializer(self, entity_type: type[EntityT]) -> XmlSerializer[EntityT]:
        return XmlSerializer(entity_type)
