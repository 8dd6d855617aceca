"""Parsing module for the bucket declaration DSL."""

from typed_buckets.parsing.bucket_lexer import BucketLexer
from typed_buckets.parsing.bucket_parser import BucketParser

__all__ = [
    "BucketLexer",
    "BucketParser",
]
