"""Tests for bucket declarations and the bucket registry."""

import pytest

from typed_buckets.registry import BucketRegistry, normalize_declaration
from typed_buckets.types import DuplicateAttributeError, TypeHint


class TestNormalizeDeclaration:
    """Tests for the accepted declaration shapes."""

    def test_bare_name(self):
        spec = normalize_declaration("extras", "best_served_with")
        assert spec.container_column == "extras"
        assert spec.attribute_names == ["best_served_with"]
        assert spec.attributes[0].type_hint == TypeHint.STRING

    def test_sequence_of_names(self):
        spec = normalize_declaration("extras", ["a", "b", "c"])
        assert spec.attribute_names == ["a", "b", "c"]
        assert all(a.type_hint == TypeHint.STRING for a in spec.attributes)

    def test_mapping_keeps_order_and_types(self):
        def aka(v):
            return "aka " + v

        spec = normalize_declaration(
            "extras", {"rating": int, "vegetarian": "boolean", "nickname": aka}
        )
        assert spec.attribute_names == ["rating", "vegetarian", "nickname"]
        assert [a.type_hint for a in spec.attributes] == [
            TypeHint.INTEGER,
            TypeHint.BOOLEAN,
            TypeHint.CUSTOM,
        ]
        assert spec.attributes[2].transform is aka

    def test_sequence_with_non_string(self):
        with pytest.raises(TypeError):
            normalize_declaration("extras", ["a", 3])

    def test_unsupported_shape(self):
        with pytest.raises(TypeError):
            normalize_declaration("extras", 12)

    @pytest.mark.parametrize("name", ["not valid", "1st", "_private"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            normalize_declaration("extras", name)


class TestBucketRegistry:
    """Tests for BucketRegistry."""

    def test_register_and_lookup(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", {"rating": int}))

        assert registry.list_containers() == ["extras"]
        assert registry.list_attributes() == ["rating"]
        assert "rating" in registry
        assert "missing" not in registry
        assert registry.bucket_for("rating").container_column == "extras"
        assert registry.attribute("rating").type_hint == TypeHint.INTEGER
        assert len(registry) == 1

    def test_same_container_merges(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", "a"))
        merged = registry.register(normalize_declaration("extras", ["b", "c"]))

        assert merged.attribute_names == ["a", "b", "c"]
        assert registry.get("extras") is merged
        assert registry.list_containers() == ["extras"]

    def test_multiple_containers(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", "a"))
        registry.register(normalize_declaration("notes", "b"))

        assert registry.list_containers() == ["extras", "notes"]
        assert registry.bucket_for("b").container_column == "notes"

    def test_duplicate_across_buckets(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", "x"))
        with pytest.raises(DuplicateAttributeError, match="'x'"):
            registry.register(normalize_declaration("notes", ["y", "x"]))

        # The failed declaration registered nothing
        assert registry.list_containers() == ["extras"]
        assert "y" not in registry

    def test_duplicate_within_declaration(self):
        registry = BucketRegistry()
        with pytest.raises(DuplicateAttributeError):
            registry.register(normalize_declaration("extras", ["x", "x"]))

    def test_duplicate_is_value_error(self):
        assert issubclass(DuplicateAttributeError, ValueError)

    def test_missing_lookups(self):
        registry = BucketRegistry()
        assert registry.get("extras") is None
        with pytest.raises(KeyError):
            registry.get_or_raise("extras")
        with pytest.raises(KeyError):
            registry.bucket_for("rating")

    def test_attribute_missing_from_its_bucket(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", "a"))
        registry._attribute_buckets["ghost"] = "extras"
        with pytest.raises(KeyError, match="ghost"):
            registry.attribute("ghost")

    def test_copy_is_independent(self):
        registry = BucketRegistry()
        registry.register(normalize_declaration("extras", "a"))
        clone = registry.copy()
        clone.register(normalize_declaration("extras", "b"))

        assert registry.get("extras").attribute_names == ["a"]
        assert clone.get("extras").attribute_names == ["a", "b"]
        assert "b" not in registry
