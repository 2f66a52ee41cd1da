"""Tests for the field type registry.

Tests verify:
- Strict scalar conversion per kind (no cross-type coercion)
- Enum membership enforcement on top of the base type
- List conversion and ordered comparison
- Schema parsing keeps declaration order and rejects malformed definitions
"""

import uuid
from datetime import UTC, datetime

import pytest

from worktrack.core.fields import (
    EnumType,
    FieldKind,
    ListType,
    SimpleType,
    parse_field_type,
    parse_schema,
    scalar_equal,
    sequence_equal,
)
from worktrack.errors import BadParameterError


class TestSimpleType:
    """Tests for scalar conversion."""

    def test_absent_value_converts_to_none(self) -> None:
        """None converts to None for every scalar kind."""
        for kind in (FieldKind.STRING, FieldKind.INTEGER, FieldKind.INSTANT, FieldKind.USER):
            assert SimpleType(kind=kind).convert_from_model(None) is None

    def test_string_accepts_only_strings(self) -> None:
        """A string field rejects a number instead of stringifying it."""
        string_type = SimpleType(kind=FieldKind.STRING)
        assert string_type.convert_from_model("open") == "open"
        with pytest.raises(BadParameterError):
            string_type.convert_from_model(42)

    def test_integer_rejects_booleans(self) -> None:
        """bool is an int subclass but never an integer field value."""
        integer_type = SimpleType(kind=FieldKind.INTEGER)
        assert integer_type.convert_from_model(3) == 3
        with pytest.raises(BadParameterError):
            integer_type.convert_from_model(True)

    def test_float_widens_integers(self) -> None:
        """Integers stored in a float field convert to float."""
        value = SimpleType(kind=FieldKind.FLOAT).convert_from_model(2)
        assert value == 2.0
        assert isinstance(value, float)

    def test_instant_parses_iso_strings_as_utc(self) -> None:
        """Naive ISO timestamps are read as UTC."""
        value = SimpleType(kind=FieldKind.INSTANT).convert_from_model("2024-03-01T12:00:00")
        assert value == datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

    def test_instant_rejects_garbage(self) -> None:
        """A non-timestamp string is a bad parameter."""
        with pytest.raises(BadParameterError):
            SimpleType(kind=FieldKind.INSTANT).convert_from_model("yesterday")

    def test_reference_kinds_convert_to_uuid(self) -> None:
        """User, iteration, area, label and board column values are ids."""
        identity = uuid.uuid4()
        assert SimpleType(kind=FieldKind.USER).convert_from_model(str(identity)) == identity
        with pytest.raises(BadParameterError):
            SimpleType(kind=FieldKind.AREA).convert_from_model("not-a-uuid")


class TestEnumType:
    """Tests for enum conversion."""

    def test_member_value_converts(self) -> None:
        """A declared value converts through the base type."""
        enum_type = EnumType(
            kind=FieldKind.ENUM,
            base_type=SimpleType(kind=FieldKind.STRING),
            values=("new", "open", "closed"),
        )
        assert enum_type.convert_from_model("open") == "open"

    def test_non_member_value_is_rejected(self) -> None:
        """A value outside the declared list fails even if the base type accepts it."""
        enum_type = EnumType(
            kind=FieldKind.ENUM,
            base_type=SimpleType(kind=FieldKind.STRING),
            values=("new", "open"),
        )
        with pytest.raises(BadParameterError) as exc_info:
            enum_type.convert_from_model("resolved")
        assert exc_info.value.value == "resolved"

    def test_membership_is_type_strict(self) -> None:
        """A declared integer 1 does not admit the float 1.0."""
        enum_type = EnumType(
            kind=FieldKind.ENUM,
            base_type=SimpleType(kind=FieldKind.FLOAT),
            values=(1, 2),
        )
        with pytest.raises(BadParameterError):
            enum_type.convert_from_model(1.0)


class TestListType:
    """Tests for list conversion and comparison."""

    def test_converts_each_element(self) -> None:
        """Elements convert with the component type."""
        list_type = ListType(kind=FieldKind.LIST, component_type=SimpleType(kind=FieldKind.LABEL))
        first, second = uuid.uuid4(), uuid.uuid4()
        assert list_type.convert_from_model([str(first), str(second)]) == [first, second]

    def test_rejects_non_list(self) -> None:
        """A scalar stored in a list field is a bad parameter."""
        list_type = ListType(kind=FieldKind.LIST, component_type=SimpleType(kind=FieldKind.STRING))
        with pytest.raises(BadParameterError):
            list_type.convert_from_model("a")

    def test_sequence_equal_is_order_sensitive(self) -> None:
        """Reordering elements makes two lists different."""
        assert sequence_equal(["a", "b"], ["a", "b"])
        assert not sequence_equal(["a", "b"], ["b", "a"])
        assert not sequence_equal(["a"], ["a", "a"])

    def test_scalar_equal_is_type_strict(self) -> None:
        """Equal-looking values of different types never compare equal."""
        assert scalar_equal(1, 1)
        assert not scalar_equal(1, 1.0)
        assert not scalar_equal(1, True)
        assert scalar_equal(None, None)


class TestParseSchema:
    """Tests for parse_schema() and parse_field_type()."""

    def test_keeps_declaration_order(self, type_id: uuid.UUID) -> None:
        """Fields iterate in the order the work item type declares them."""
        schema = parse_schema(
            type_id,
            "Bug",
            [
                {"name": "system.title", "type": {"kind": "string"}},
                {"name": "system.state", "type": {"kind": "enum", "values": ["new", "closed"]}},
                {"name": "system.labels", "type": {"kind": "list", "component_type": {"kind": "label"}}},
            ],
        )
        assert list(schema.fields) == ["system.title", "system.state", "system.labels"]
        assert isinstance(schema.fields["system.state"].type, EnumType)
        assert isinstance(schema.fields["system.labels"].type, ListType)

    def test_rejects_duplicate_field_names(self, type_id: uuid.UUID) -> None:
        """A field name may appear only once."""
        with pytest.raises(BadParameterError):
            parse_schema(
                type_id,
                "Bug",
                [
                    {"name": "system.title", "type": {"kind": "string"}},
                    {"name": "system.title", "type": {"kind": "string"}},
                ],
            )

    def test_rejects_unknown_kind(self) -> None:
        """A kind outside the registry is a bad parameter."""
        with pytest.raises(BadParameterError):
            parse_field_type({"kind": "markup"})

    def test_rejects_enum_without_values(self) -> None:
        """An enum must declare at least one value."""
        with pytest.raises(BadParameterError):
            parse_field_type({"kind": "enum", "base_type": {"kind": "string"}, "values": []})

    def test_rejects_nested_lists(self) -> None:
        """List components must be scalars."""
        with pytest.raises(BadParameterError):
            parse_field_type({"kind": "list", "component_type": {"kind": "list"}})
