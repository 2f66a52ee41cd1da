"""Field type registry for work item schemas.

A work item type declares an ordered list of fields; each field has a type
descriptor telling the rest of the service how to read its stored JSON value
back into a comparable Python value. Descriptors form a closed set:

- SimpleType  — a single scalar of one FieldKind
- EnumType    — a scalar restricted to a declared list of values
- ListType    — an ordered list of scalars of one component kind

parse_schema() turns the ``fields`` JSON stored on a WorkItemType row into a
WorkItemTypeSchema keyed by field name, preserving declaration order.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from worktrack.errors import BadParameterError


class FieldKind(str, Enum):
    """Kinds a field type descriptor can have."""

    STRING = "string"
    URL = "url"
    INTEGER = "integer"
    DURATION = "duration"
    FLOAT = "float"
    BOOLEAN = "boolean"
    INSTANT = "instant"
    USER = "user"
    ITERATION = "iteration"
    AREA = "area"
    LABEL = "label"
    BOARDCOLUMN = "boardcolumn"
    ENUM = "enum"
    LIST = "list"


# Scalar kinds whose stored value is a reference to another entity
_REFERENCE_KINDS = frozenset(
    {
        FieldKind.USER,
        FieldKind.ITERATION,
        FieldKind.AREA,
        FieldKind.LABEL,
        FieldKind.BOARDCOLUMN,
    }
)


@dataclass(frozen=True)
class FieldType:
    """Base class of all field type descriptors."""

    kind: FieldKind

    def convert_from_model(self, value: Any) -> Any:
        """Convert a stored value into its comparable in-memory form."""
        raise NotImplementedError


@dataclass(frozen=True)
class SimpleType(FieldType):
    """A single scalar value.

    Absent values convert to None for every kind.
    """

    def convert_from_model(self, value: Any) -> Any:
        if value is None:
            return None
        kind = self.kind
        if kind in (FieldKind.STRING, FieldKind.URL):
            if isinstance(value, str):
                return value
        elif kind in (FieldKind.INTEGER, FieldKind.DURATION):
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        elif kind == FieldKind.FLOAT:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        elif kind == FieldKind.BOOLEAN:
            if isinstance(value, bool):
                return value
        elif kind == FieldKind.INSTANT:
            return _convert_instant(value)
        elif kind in _REFERENCE_KINDS:
            return _convert_reference(value, kind)
        raise BadParameterError(parameter="value", value=value, expected=f"{kind.value} value")


@dataclass(frozen=True)
class EnumType(FieldType):
    """A scalar restricted to a declared list of values.

    Conversion goes through the base type and then enforces membership,
    which the base type alone does not.
    """

    base_type: SimpleType = field(default_factory=lambda: SimpleType(kind=FieldKind.STRING))
    values: tuple[Any, ...] = ()

    def convert_from_model(self, value: Any) -> Any:
        if value is None:
            return None
        converted = self.base_type.convert_from_model(value)
        if not any(scalar_equal(converted, allowed) for allowed in self.values):
            raise BadParameterError(
                parameter="value",
                value=value,
                expected=f"one of {list(self.values)}",
            )
        return converted


@dataclass(frozen=True)
class ListType(FieldType):
    """An ordered list of scalars of one component type."""

    component_type: SimpleType = field(default_factory=lambda: SimpleType(kind=FieldKind.STRING))

    def convert_from_model(self, value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise BadParameterError(parameter="value", value=value, expected="list")
        return [self.component_type.convert_from_model(item) for item in value]


@dataclass(frozen=True)
class FieldDefinition:
    """One field declared by a work item type.

    Attributes:
        name: Field name, e.g. ``system.state``.
        label: Human-readable label.
        required: Whether the field must carry a value.
        type: The field's type descriptor.
    """

    name: str
    type: FieldType
    label: str = ""
    required: bool = False


@dataclass(frozen=True)
class WorkItemTypeSchema:
    """Resolved schema of a work item type.

    Attributes:
        id: The work item type id.
        name: The work item type name.
        fields: Field definitions keyed by name, in declaration order.
    """

    id: uuid.UUID
    name: str
    fields: dict[str, FieldDefinition]


def scalar_equal(left: Any, right: Any) -> bool:
    """Compare two converted scalars; values of different types never match."""
    return type(left) is type(right) and left == right


def sequence_equal(left: list[Any], right: list[Any]) -> bool:
    """Compare two converted lists element by element, order included."""
    if len(left) != len(right):
        return False
    return all(scalar_equal(a, b) for a, b in zip(left, right))


def _convert_instant(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as exc:
            raise BadParameterError(parameter="value", value=value, expected="ISO 8601 instant") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise BadParameterError(parameter="value", value=value, expected="instant value")


def _convert_reference(value: Any, kind: FieldKind) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError as exc:
            raise BadParameterError(parameter="value", value=value, expected=f"{kind.value} id") from exc
    raise BadParameterError(parameter="value", value=value, expected=f"{kind.value} id")


def parse_field_type(raw: dict[str, Any]) -> FieldType:
    """Build a field type descriptor from its stored JSON form.

    Args:
        raw: e.g. ``{"kind": "enum", "base_type": {"kind": "string"},
            "values": ["open", "closed"]}``.

    Returns:
        The matching FieldType descriptor.

    Raises:
        BadParameterError: If the kind is unknown or the descriptor is malformed.
    """
    if not isinstance(raw, dict):
        raise BadParameterError(parameter="type", value=raw, expected="field type object")
    try:
        kind = FieldKind(raw.get("kind"))
    except ValueError as exc:
        raise BadParameterError(parameter="kind", value=raw.get("kind"), expected="known field kind") from exc

    if kind == FieldKind.ENUM:
        base_type = parse_field_type(raw.get("base_type", {"kind": FieldKind.STRING.value}))
        if not isinstance(base_type, SimpleType):
            raise BadParameterError(parameter="base_type", value=raw.get("base_type"), expected="scalar type")
        values = tuple(base_type.convert_from_model(v) for v in raw.get("values", []))
        if not values:
            raise BadParameterError(parameter="values", value=[], expected="at least one enum value")
        return EnumType(kind=kind, base_type=base_type, values=values)

    if kind == FieldKind.LIST:
        component_type = parse_field_type(raw.get("component_type", {"kind": FieldKind.STRING.value}))
        if not isinstance(component_type, SimpleType):
            raise BadParameterError(
                parameter="component_type",
                value=raw.get("component_type"),
                expected="scalar type",
            )
        return ListType(kind=kind, component_type=component_type)

    return SimpleType(kind=kind)


def parse_schema(type_id: uuid.UUID, name: str, raw_fields: list[dict[str, Any]]) -> WorkItemTypeSchema:
    """Build a WorkItemTypeSchema from the ``fields`` JSON of a WorkItemType.

    Args:
        type_id: The work item type id.
        name: The work item type name.
        raw_fields: Field definitions in declaration order.

    Returns:
        The resolved schema.

    Raises:
        BadParameterError: If a definition is malformed or a name repeats.
    """
    fields: dict[str, FieldDefinition] = {}
    for raw in raw_fields:
        field_name = raw.get("name")
        if not field_name:
            raise BadParameterError(parameter="name", value=field_name, expected="field name")
        if field_name in fields:
            raise BadParameterError(parameter="name", value=field_name, expected="unique field name")
        fields[field_name] = FieldDefinition(
            name=field_name,
            type=parse_field_type(raw.get("type", {})),
            label=raw.get("label", field_name),
            required=bool(raw.get("required", False)),
        )
    return WorkItemTypeSchema(id=type_id, name=name, fields=fields)
