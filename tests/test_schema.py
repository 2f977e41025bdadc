"""Tests for Schema: declaration, extension, equality and the wire envelope."""

from __future__ import annotations

from enum import Enum

import pytest

from riakrest import Schema, SchemaViolation


class Fields(str, Enum):
    NAME = "name"
    AGE = "age"


class TestDeclare:
    def test_masks_default_to_allowed(self):
        s = Schema.declare(["name", "age"])
        assert s.allowed_fields == ("name", "age")
        assert s.required_fields == ()
        assert s.read_mask == ("name", "age")
        assert s.write_mask == ("name", "age")

    def test_empty_schema(self):
        s = Schema()
        assert s.allowed_fields == ()
        assert s.read_mask == ()

    def test_duplicates_collapse(self):
        s = Schema.declare(["a", "b", "a", "c", "b"])
        assert s.allowed_fields == ("a", "b", "c")

    def test_enum_and_string_are_the_same_field(self):
        s = Schema.declare([Fields.NAME, "name", "age"], required=[Fields.AGE])
        assert s.allowed_fields == ("name", "age")
        assert s.required_fields == ("age",)

    def test_required_outside_allowed_fails(self):
        with pytest.raises(SchemaViolation, match="not allowed"):
            Schema.declare(["name"], required=["age"])

    def test_mask_outside_allowed_fails(self):
        with pytest.raises(SchemaViolation):
            Schema.declare(["name"], read_mask=["name", "age"])
        with pytest.raises(SchemaViolation):
            Schema.declare(["name"], write_mask=["secret"])

    def test_non_string_names_fail(self):
        with pytest.raises(SchemaViolation):
            Schema.declare(["name", 3])
        with pytest.raises(SchemaViolation):
            Schema.declare(["name", "  "])

    def test_single_string_is_not_a_sequence(self):
        with pytest.raises(SchemaViolation):
            Schema.declare("name")


class TestCreate:
    def test_from_sequence(self):
        assert Schema.create(["a", "b"]) == Schema.declare(["a", "b"])

    def test_from_mapping(self):
        s = Schema.create(
            {
                "allowed_fields": ["a", "b", "c"],
                "required_fields": ["a"],
                "read_mask": ["a", "b"],
                "write_mask": ["a", "c"],
            }
        )
        assert s.required_fields == ("a",)
        assert s.read_mask == ("a", "b")
        assert s.write_mask == ("a", "c")

    def test_from_envelope(self):
        s = Schema.create({"schema": {"allowed_fields": ["a"], "read_mask": ["a"]}})
        assert s.allowed_fields == ("a",)
        assert s.write_mask == ("a",)

    def test_mapping_without_allowed_fails(self):
        with pytest.raises(SchemaViolation, match="allowed_fields"):
            Schema.create({"read_mask": ["a"]})

    def test_non_sequence_mask_fails(self):
        with pytest.raises(SchemaViolation):
            Schema.create({"allowed_fields": ["a"], "read_mask": "a"})

    def test_scalar_fails(self):
        with pytest.raises(SchemaViolation):
            Schema.create(42)


class TestExtension:
    def test_allow_returns_added_names(self):
        s = Schema.declare(["a"])
        assert s.allow("a", "b") == ["b"]
        assert s.allow(["c", "b"]) == ["c"]
        assert s.allowed_fields == ("a", "b", "c")

    def test_require_existing(self):
        s = Schema.declare(["a", "b"])
        assert s.require("b") == ["b"]
        assert s.require("b") == []
        assert s.required_fields == ("b",)

    def test_require_unknown_adds_nothing(self):
        s = Schema.declare(["a", "b"])
        with pytest.raises(SchemaViolation):
            s.require("a", "zzz")
        assert s.required_fields == ()

    def test_readable_and_writable(self):
        s = Schema.declare(["a", "b"], read_mask=[], write_mask=[])
        assert s.readable("a") == ["a"]
        assert s.writable(["a", "b"]) == ["a", "b"]
        assert s.read_mask == ("a",)
        with pytest.raises(SchemaViolation):
            s.writable("c")

    def test_readwrite_allows_first(self):
        s = Schema.declare(["a"], read_mask=[], write_mask=["a"])
        added = s.readwrite("a", "b")
        assert added == ["a", "b"]
        assert s.allowed_fields == ("a", "b")
        assert s.read_mask == ("a", "b")
        assert s.write_mask == ("a", "b")

    def test_copy_is_independent(self):
        s = Schema.declare(["a"])
        c = s.copy()
        c.allow("b")
        assert s.allowed_fields == ("a",)
        assert c.allowed_fields == ("a", "b")


class TestEquality:
    def test_order_does_not_matter(self):
        assert Schema.declare(["a", "b"]) == Schema.declare(["b", "a"])

    def test_masks_matter(self):
        assert Schema.declare(["a", "b"]) != Schema.declare(["a", "b"], read_mask=["a"])


class TestWire:
    def test_envelope_shape(self):
        s = Schema.declare(["a", "b"], required=["a"], write_mask=["b"])
        assert s.to_wire() == {
            "schema": {
                "allowed_fields": ["a", "b"],
                "required_fields": ["a"],
                "read_mask": ["a", "b"],
                "write_mask": ["b"],
            }
        }

    def test_from_wire(self):
        s = Schema.declare(["a", "b"], required=["a"], write_mask=["b"])
        assert Schema.from_wire(s.to_wire()) == s

    def test_from_wire_rejects_non_mapping(self):
        with pytest.raises(SchemaViolation):
            Schema.from_wire(["a"])  # type: ignore[arg-type]
