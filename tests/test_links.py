"""Tests for storage links, query links and the wildcard."""

from __future__ import annotations

import copy

import pytest

from riakrest import ANY, Bucket, Field, LinkShapeError, QueryLink, Record, StorageLink, Wildcard


class Item(Record):
    name: Field[str]


class TestWildcard:
    def test_singleton(self):
        assert Wildcard() is ANY
        assert copy.deepcopy(ANY) is ANY

    def test_renders_as_underscore(self):
        assert str(ANY) == "_"
        assert repr(ANY) == "ANY"


class TestStorageLink:
    def test_components_are_trimmed(self):
        link = StorageLink(" people ", "remy", " sister")
        assert link.for_wire() == ["people", "remy", "sister"]

    def test_bucket_instance_uses_name(self):
        link = StorageLink(Bucket("items", Item), "k", "t")
        assert link.bucket == "items"

    @pytest.mark.parametrize("bad", [None, "", "   ", 3])
    def test_invalid_components(self, bad):
        with pytest.raises(LinkShapeError):
            StorageLink("people", bad, "tag")

    def test_explicit_wildcard(self):
        link = StorageLink("people", ANY, "tag")
        assert link.key is ANY
        assert not link.is_concrete
        assert link.for_wire() == ["people", "_", "tag"]

    def test_equality_and_hash(self):
        a = StorageLink("people", "remy", "sister")
        b = StorageLink("people", "remy", "sister")
        assert a == b
        assert len({a, b}) == 1
        assert a != StorageLink("people", "remy", "brother")

    def test_frozen(self):
        link = StorageLink("people", "remy", "sister")
        with pytest.raises(AttributeError):
            link.tag = "brother"  # type: ignore[misc]

    def test_for_transport_encodes_segment(self):
        link = StorageLink("my bucket", "a/b", "t")
        assert link.for_transport() == "my%20bucket,a%2Fb,t"

    def test_from_wire(self):
        assert StorageLink.from_wire(["people", "remy", "sister"]) == StorageLink(
            "people", "remy", "sister"
        )

    def test_from_wire_keeps_underscore_values(self):
        link = StorageLink.from_wire(["_", "_", "_"])
        assert link == StorageLink("_", "_", "_")
        assert link.key == "_"
        assert link.is_concrete

    @pytest.mark.parametrize("bad", ["people,remy,sister", ["people", "remy"], None])
    def test_from_wire_rejects_bad_shapes(self, bad):
        with pytest.raises(LinkShapeError):
            StorageLink.from_wire(bad)


class TestQueryLink:
    def test_defaults_to_wildcards(self):
        q = QueryLink()
        assert q.bucket is ANY and q.tag is ANY and q.acc is ANY
        assert q.for_wire() == ["_", "_", "_"]

    def test_blank_and_none_become_wildcard(self):
        q = QueryLink("people", "  ", None)
        assert q.tag is ANY
        assert q.acc is ANY
        assert q.for_transport() == "people,_,_"

    def test_non_string_fails(self):
        with pytest.raises(LinkShapeError):
            QueryLink("people", 5)

    def test_create(self):
        assert QueryLink.create(None) == QueryLink()
        assert QueryLink.create("people") == QueryLink("people")
        assert QueryLink.create(["people", "sister"]) == QueryLink("people", "sister")
        assert QueryLink.create(("people", "sister", "1")).acc == "1"

    def test_create_too_many_components(self):
        with pytest.raises(LinkShapeError):
            QueryLink.create(["a", "b", "c", "d"])

    def test_bucket_instance(self):
        assert QueryLink(Bucket("items", Item), "t").bucket == "items"

    def test_not_equal_to_storage_link(self):
        assert QueryLink("a", "b", "c") != StorageLink("a", "b", "c")
