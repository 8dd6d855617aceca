"""Typed Buckets - typed virtual attributes packed into serialized columns."""

from typed_buckets.codec import ContainerDecodeError, ContainerEncodeError
from typed_buckets.parsing import BucketParser
from typed_buckets.record import Record, VirtualAttribute
from typed_buckets.registry import BucketRegistry
from typed_buckets.storage import RecordStore
from typed_buckets.types import (
    AttributeSpec,
    BucketSpec,
    DuplicateAttributeError,
    TypeHint,
)

__all__ = [
    # Main API
    "Record",
    "RecordStore",
    "BucketParser",
    # Declarations
    "AttributeSpec",
    "BucketSpec",
    "BucketRegistry",
    "TypeHint",
    "VirtualAttribute",
    # Errors
    "ContainerDecodeError",
    "ContainerEncodeError",
    "DuplicateAttributeError",
]

__version__ = "0.1.0"
