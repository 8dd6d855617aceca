"""Registry of bucket declarations for a record type."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from typed_buckets.types import AttributeSpec, BucketSpec, DuplicateAttributeError


def normalize_declaration(container_column: str, decls: Any) -> BucketSpec:
    """Build a BucketSpec from the accepted declaration shapes.

    Args:
        container_column: Name of the column holding the serialized bucket.
        decls: A bare attribute name, a sequence of bare names (all strings),
            or a mapping of name to type hint or transform.

    Returns:
        A BucketSpec with attributes in declaration order.
    """
    if isinstance(decls, str):
        attributes = [AttributeSpec(name=decls)]
    elif isinstance(decls, Mapping):
        attributes = [AttributeSpec.from_hint(name, hint) for name, hint in decls.items()]
    elif isinstance(decls, (list, tuple)):
        attributes = []
        for name in decls:
            if not isinstance(name, str):
                raise TypeError(f"Attribute names must be strings, got {name!r}")
            attributes.append(AttributeSpec(name=name))
    else:
        raise TypeError(
            "Bucket attributes must be a name, a sequence of names, or a mapping "
            f"of names to types, got {type(decls).__name__}"
        )

    for attr in attributes:
        if not attr.name.isidentifier() or attr.name.startswith("_"):
            raise ValueError(f"Attribute name '{attr.name}' must be a public identifier")

    return BucketSpec(container_column=container_column, attributes=tuple(attributes))


class BucketRegistry:
    """Buckets declared on one record type, keyed by container column."""

    def __init__(self) -> None:
        self._buckets: dict[str, BucketSpec] = {}
        self._attribute_buckets: dict[str, str] = {}  # attribute name → container

    def register(self, spec: BucketSpec) -> BucketSpec:
        """Register a bucket, merging into an existing one for the same container.

        Returns:
            The BucketSpec now stored for the container.

        Raises:
            DuplicateAttributeError: If an attribute name is already declared in
                any bucket of this type, or repeats within ``spec``.
        """
        seen: set[str] = set()
        for name in spec.attribute_names:
            if name in seen:
                raise DuplicateAttributeError(
                    f"Attribute '{name}' is declared twice in bucket '{spec.container_column}'"
                )
            owner = self._attribute_buckets.get(name)
            if owner is not None:
                raise DuplicateAttributeError(
                    f"Attribute '{name}' is already declared in bucket '{owner}'"
                )
            seen.add(name)

        existing = self._buckets.get(spec.container_column)
        merged = existing.merged_with(spec) if existing is not None else spec
        self._buckets[spec.container_column] = merged
        for name in spec.attribute_names:
            self._attribute_buckets[name] = spec.container_column
        return merged

    def get(self, container_column: str) -> BucketSpec | None:
        """Get the bucket stored in a container column."""
        return self._buckets.get(container_column)

    def get_or_raise(self, container_column: str) -> BucketSpec:
        """Get a bucket by container column, raising if not found."""
        spec = self._buckets.get(container_column)
        if spec is None:
            raise KeyError(f"No bucket declared for column '{container_column}'")
        return spec

    def bucket_for(self, attribute_name: str) -> BucketSpec:
        """Get the bucket that holds an attribute."""
        container = self._attribute_buckets.get(attribute_name)
        if container is None:
            raise KeyError(f"Virtual attribute '{attribute_name}' not found")
        return self._buckets[container]

    def attribute(self, attribute_name: str) -> AttributeSpec:
        """Get an attribute spec by name."""
        spec = self.bucket_for(attribute_name).get_attribute(attribute_name)
        if spec is None:
            raise KeyError(f"Virtual attribute '{attribute_name}' not found")
        return spec

    def list_containers(self) -> list[str]:
        """List container columns in declaration order."""
        return list(self._buckets.keys())

    def list_attributes(self) -> list[str]:
        """List all virtual attribute names across buckets."""
        return list(self._attribute_buckets.keys())

    def buckets(self) -> list[BucketSpec]:
        """Return all bucket specs in declaration order."""
        return list(self._buckets.values())

    def copy(self) -> BucketRegistry:
        """Return an independent registry holding the same declarations."""
        clone = BucketRegistry()
        clone._buckets = dict(self._buckets)
        clone._attribute_buckets = dict(self._attribute_buckets)
        return clone

    def __contains__(self, attribute_name: object) -> bool:
        return attribute_name in self._attribute_buckets

    def __len__(self) -> int:
        return len(self._buckets)
