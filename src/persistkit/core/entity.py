"""Entity contract and field-level conversion helpers.

An entity is any dataclass or pydantic model with a mutable integer ``id``.
``id == 0`` means "not assigned yet"; the repository numbers such entities on
insert. Conversion between entities and plain mappings goes through a cached
pydantic ``TypeAdapter`` so every backend coerces values the same way.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Tuple, TypeVar, runtime_checkable

from pydantic import BaseModel, TypeAdapter


@runtime_checkable
class Entity(Protocol):
    """Marks a type as persistable through a stable integer identity."""

    id: int


EntityT = TypeVar("EntityT", bound=Entity)


@dataclasses.dataclass(frozen=True, slots=True)
class EntityField:
    """A persisted field: its name, whether it may be omitted on input and whether it holds text."""

    name: str
    has_default: bool
    holds_text: bool = False


@lru_cache(maxsize=None)
def entity_fields(entity_type: type) -> Tuple[EntityField, ...]:
    """Return the readable and writable fields of ``entity_type`` in declaration order.

    Raises:
        TypeError: If ``entity_type`` is neither a dataclass nor a pydantic model.
    """

    if dataclasses.is_dataclass(entity_type):
        try:
            hints = typing.get_type_hints(entity_type)
        except (NameError, TypeError):
            hints = {}
        return tuple(
            EntityField(
                name=field.name,
                has_default=(
                    field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
                ),
                holds_text=_is_text(hints.get(field.name, field.type)),
            )
            for field in dataclasses.fields(entity_type)
            if field.init
        )
    if isinstance(entity_type, type) and issubclass(entity_type, BaseModel):
        return tuple(
            EntityField(name=name, has_default=not info.is_required(), holds_text=_is_text(info.annotation))
            for name, info in entity_type.model_fields.items()
        )
    raise TypeError(f"{entity_type!r} is not a dataclass or pydantic model")


def _is_text(annotation: Any) -> bool:
    """True for ``str`` and optional ``str`` annotations, including unresolved string forms."""

    if isinstance(annotation, str):
        return annotation.replace(" ", "") in {"str", "str|None", "None|str", "Optional[str]"}
    if annotation is str:
        return True
    if typing.get_origin(annotation) not in (typing.Union, types.UnionType):
        return False
    args = typing.get_args(annotation)
    return str in args and all(arg in (str, type(None)) for arg in args)


def entity_field_names(entity_type: type) -> List[str]:
    return [field.name for field in entity_fields(entity_type)]


@lru_cache(maxsize=None)
def _adapter(entity_type: type) -> TypeAdapter:
    return TypeAdapter(entity_type)


def normalize_keys(entity_type: type, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Map ``payload`` keys onto field names, ignoring case and unknown keys."""

    lookup = {name.lower(): name for name in entity_field_names(entity_type)}
    normalized: Dict[str, Any] = {}
    for key, value in payload.items():
        name = lookup.get(str(key).lower())
        if name is not None and name not in normalized:
            normalized[name] = value
    return normalized


def entity_from_mapping(entity_type: type[EntityT], payload: Mapping[str, Any]) -> EntityT:
    """Build an entity from ``payload``, coercing values to the declared field types.

    Raises:
        pydantic.ValidationError: If a value cannot be coerced.
    """

    return _adapter(entity_type).validate_python(normalize_keys(entity_type, payload))


def entity_to_mapping(entity: Any, *, mode: str = "python") -> Dict[str, Any]:
    """Return the persisted fields of ``entity`` as a plain dictionary.

    ``mode="json"`` renders values (decimals, datetimes) as JSON-safe primitives.
    """

    entity_type = type(entity)
    dumped = _adapter(entity_type).dump_python(entity, mode=mode)
    return {name: dumped.get(name) for name in entity_field_names(entity_type)}


def entities_to_json(entity_type: type, entities: Iterable[Any], *, indent: int | None = 2) -> str:
    return TypeAdapter(List[entity_type]).dump_json(list(entities), indent=indent).decode("utf-8")


__all__ = [
    "Entity",
    "EntityField",
    "EntityT",
    "entities_to_json",
    "entity_field_names",
    "entity_fields",
    "entity_from_mapping",
    "entity_to_mapping",
    "normalize_keys",
]
