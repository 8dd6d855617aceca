"""Record base class with virtual attributes stored in serialized buckets."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from typed_buckets import codec
from typed_buckets.parsing import BucketParser
from typed_buckets.registry import BucketRegistry, normalize_declaration
from typed_buckets.types import (
    AttributeSpec,
    BucketSpec,
    DuplicateAttributeError,
    Transform,
)

logger = logging.getLogger(__name__)


class VirtualAttribute:
    """Accessor pair for one virtual attribute, installed on the record class.

    Reads and writes go through the record's working copy of the bucket, so
    ``dish.rating = "6"`` behaves like ``dish.write_attribute("rating", "6")``.
    """

    def __init__(self, spec: AttributeSpec, container_column: str) -> None:
        self.spec = spec
        self.container_column = container_column

    @property
    def name(self) -> str:
        return self.spec.name

    def __get__(self, instance: Record | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.read_attribute(self.spec.name)

    def __set__(self, instance: Record, value: Any) -> None:
        instance.write_attribute(self.spec.name, value)

    def __repr__(self) -> str:
        return f"VirtualAttribute({self.spec.name!r}, bucket={self.container_column!r})"


class Record:
    """A row-mapped object whose stored columns may hold serialized buckets.

    Subclasses list their stored columns in ``columns`` and declare buckets
    with ``declare_bucket`` (or its alias ``bucket``)::

        class Dish(Record):
            columns = ("name", "extras")

        Dish.declare_bucket("extras", {"best_served_with": str, "rating": int})

    Each instance keeps one working copy per touched bucket. The working copy
    is decoded from the container column on first touch and encoded back by
    ``before_persist``. Changes made to a container column directly after its
    working copy exists are not seen, and are overwritten on the next persist.
    """

    columns: ClassVar[tuple[str, ...]] = ()
    _bucket_registry: ClassVar[BucketRegistry] = BucketRegistry()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.columns = tuple(cls.columns)
        # Declarations on a subclass never leak into its parent
        cls._bucket_registry = cls._bucket_registry.copy()

    def __init__(self, id: int | None = None, **values: Any) -> None:
        self.id = id
        self._working_copies: dict[str, dict[str, Any]] = {}

        virtual: dict[str, Any] = {}
        for column in self.columns:
            setattr(self, column, values.pop(column, None))
        for name in list(values):
            if name in self._bucket_registry:
                virtual[name] = values.pop(name)
        if values:
            unknown = ", ".join(sorted(values))
            raise TypeError(f"{type(self).__name__} got unknown attributes: {unknown}")

        for name, value in virtual.items():
            self.write_attribute(name, value)

    # -- declaration ---------------------------------------------------------

    @classmethod
    def declare_bucket(cls, container_column: str, decls: Any) -> BucketSpec:
        """Declare virtual attributes stored in ``container_column``.

        Args:
            container_column: A stored column of this record type.
            decls: A bare name, a sequence of bare names (all strings), or a
                mapping of name to type hint or transform.

        Returns:
            The BucketSpec now registered for the container column.

        Raises:
            DuplicateAttributeError: If a name is already declared on this
                type, or collides with a stored column or class member.
            ValueError: If ``container_column`` is not a stored column.
        """
        return cls._install_bucket(normalize_declaration(container_column, decls))

    bucket = declare_bucket

    @classmethod
    def declare_buckets(
        cls, text: str, transforms: dict[str, Transform] | None = None
    ) -> list[BucketSpec]:
        """Declare every bucket written in the bucket DSL.

        All buckets are checked before any is installed, so a failing
        declaration leaves the type unchanged.
        """
        specs = BucketParser(transforms).parse(text)
        trials = [c._bucket_registry.copy() for c in [cls, *cls._descendants()]]
        for spec in specs:
            cls._check_bucket(spec)
            for trial in trials:
                trial.register(spec)
        return [cls._install_bucket(spec) for spec in specs]

    @classmethod
    def _check_bucket(cls, spec: BucketSpec) -> None:
        if spec.container_column not in cls.columns:
            raise ValueError(
                f"'{spec.container_column}' is not a stored column of {cls.__name__}"
            )
        for name in spec.attribute_names:
            if name in cls.columns or name == "id":
                raise DuplicateAttributeError(
                    f"Attribute '{name}' collides with a stored column of {cls.__name__}"
                )
            if name not in cls._bucket_registry and hasattr(cls, name):
                raise DuplicateAttributeError(
                    f"Attribute '{name}' collides with {cls.__name__}.{name}"
                )

    @classmethod
    def _descendants(cls) -> list[type[Record]]:
        """Return every subclass below this type, each once."""
        found: list[type[Record]] = []
        pending = list(cls.__subclasses__())
        while pending:
            sub = pending.pop(0)
            if sub not in found:
                found.append(sub)
                pending.extend(sub.__subclasses__())
        return found

    @classmethod
    def _install_bucket(cls, spec: BucketSpec) -> BucketSpec:
        cls._check_bucket(spec)
        # Existing subclasses inherit the accessors, so they need the specs too
        descendants = cls._descendants()
        for sub in descendants:
            sub._bucket_registry.copy().register(spec)
        merged = cls._bucket_registry.register(spec)
        for sub in descendants:
            sub._bucket_registry.register(spec)
        for attr in spec.attributes:
            setattr(cls, attr.name, VirtualAttribute(attr, spec.container_column))
        logger.debug(
            "Declared bucket %s.%s: %s",
            cls.__name__,
            spec.container_column,
            ", ".join(f"{a.name}:{a.type_name}" for a in spec.attributes),
        )
        return merged

    @classmethod
    def bucket_registry(cls) -> BucketRegistry:
        """Return the bucket declarations of this record type."""
        return cls._bucket_registry

    # -- working copies ------------------------------------------------------

    def working_copy(self, container_column: str) -> dict[str, Any]:
        """Return the working copy for a bucket, decoding it on first use.

        Raises:
            KeyError: If no bucket is declared for the column.
            ContainerDecodeError: If the raw column value is malformed.
        """
        wc = self._working_copies.get(container_column)
        if wc is None:
            self._bucket_registry.get_or_raise(container_column)
            wc = codec.decode(getattr(self, container_column))
            self._working_copies[container_column] = wc
            logger.debug(
                "Materialized %s.%s (%d values)",
                type(self).__name__,
                container_column,
                len(wc),
            )
        return wc

    def is_materialized(self, container_column: str) -> bool:
        """Return whether the bucket's working copy has been decoded."""
        return container_column in self._working_copies

    def reset_working_copies(self) -> None:
        """Drop all working copies; the next touch re-reads the raw columns."""
        self._working_copies.clear()

    def read_attribute(self, name: str) -> Any:
        """Return the current value of a virtual attribute (None if unset)."""
        bucket = self._bucket_registry.bucket_for(name)
        return self.working_copy(bucket.container_column).get(name)

    def write_attribute(self, name: str, value: Any) -> Any:
        """Coerce a raw value, store it in the working copy, and return it."""
        bucket = self._bucket_registry.bucket_for(name)
        wc = self.working_copy(bucket.container_column)
        coerced = self._bucket_registry.attribute(name).coerce(value)
        wc[name] = coerced
        return coerced

    def virtual_attributes(self) -> dict[str, Any]:
        """Return every declared virtual attribute with its current value."""
        return {name: self.read_attribute(name) for name in self._bucket_registry.list_attributes()}

    # -- persistence hooks ---------------------------------------------------

    def before_persist(self) -> None:
        """Encode every touched working copy back into its container column.

        Buckets that were never materialized keep their raw value untouched.
        """
        for bucket in self._bucket_registry.buckets():
            wc = self._working_copies.get(bucket.container_column)
            if wc is None:
                continue
            setattr(self, bucket.container_column, codec.encode(wc))
            logger.debug("Flushed %s.%s", type(self).__name__, bucket.container_column)

    def to_row(self) -> dict[str, Any]:
        """Return the stored columns as a dict."""
        return {column: getattr(self, column) for column in self.columns}

    @classmethod
    def from_row(cls, row: dict[str, Any], id: int | None = None) -> Record:
        """Build an instance from stored column values without touching buckets."""
        record = cls(id=id)
        for column in cls.columns:
            setattr(record, column, row.get(column))
        return record

    def __repr__(self) -> str:
        fields = ", ".join(f"{c}={getattr(self, c)!r}" for c in self.columns)
        return f"{type(self).__name__}(id={self.id!r}, {fields})"
