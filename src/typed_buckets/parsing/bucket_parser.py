"""Parser for the bucket declaration DSL.

Example::

    bucket extras {
        best_served_with
        rating: integer,
        vegetarian: boolean
        nickname: aka       # resolved through the transforms mapping
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import ply.yacc as yacc

from typed_buckets.parsing.bucket_lexer import BucketLexer
from typed_buckets.types import (
    TYPE_HINT_NAMES,
    AttributeSpec,
    BucketSpec,
    Transform,
    TypeHint,
)


@dataclass
class AttributeDecl:
    """An attribute as written, before its type name is resolved."""

    name: str
    type_name: str | None = None  # None means string
    lineno: int = 0


@dataclass
class BucketDecl:
    """A bucket as written, before resolution."""

    container_column: str
    attributes: list[AttributeDecl]


class BucketParser:
    """Parser for bucket declarations."""

    tokens = BucketLexer.tokens

    def __init__(self, transforms: dict[str, Transform] | None = None) -> None:
        self.lexer = BucketLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.transforms: dict[str, Transform] = dict(transforms or {})

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : bucket_list"""
        p[0] = p[1]

    def p_bucket_list_empty(self, p: yacc.YaccProduction) -> None:
        """bucket_list : empty"""
        p[0] = []

    def p_bucket_list_multiple(self, p: yacc.YaccProduction) -> None:
        """bucket_list : bucket_list bucket_def"""
        p[0] = p[1] + [p[2]]

    def p_bucket_def(self, p: yacc.YaccProduction) -> None:
        """bucket_def : BUCKET IDENTIFIER LBRACE bucket_body RBRACE"""
        p[0] = BucketDecl(container_column=p[2], attributes=p[4])

    def p_bucket_body(self, p: yacc.YaccProduction) -> None:
        """bucket_body : attribute_list
                       | attribute_list COMMA"""
        p[0] = p[1]

    def p_bucket_body_empty(self, p: yacc.YaccProduction) -> None:
        """bucket_body : empty"""
        p[0] = []

    def p_attribute_list_single(self, p: yacc.YaccProduction) -> None:
        """attribute_list : attribute"""
        p[0] = [p[1]]

    def p_attribute_list_multiple(self, p: yacc.YaccProduction) -> None:
        """attribute_list : attribute_list attribute"""
        p[0] = p[1] + [p[2]]

    def p_attribute_list_comma(self, p: yacc.YaccProduction) -> None:
        """attribute_list : attribute_list COMMA attribute"""
        p[0] = p[1] + [p[3]]

    def p_attribute_with_type(self, p: yacc.YaccProduction) -> None:
        """attribute : IDENTIFIER COLON IDENTIFIER"""
        p[0] = AttributeDecl(name=p[1], type_name=p[3], lineno=p.lineno(1))

    def p_attribute_implicit_type(self, p: yacc.YaccProduction) -> None:
        """attribute : IDENTIFIER"""
        p[0] = AttributeDecl(name=p[1], lineno=p.lineno(1))

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> list[BucketSpec]:
        """Parse bucket declarations into resolved BucketSpecs."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        decls = self.parser.parse(data, lexer=self.lexer.lexer)
        if decls is None:
            decls = []

        return [self._resolve_bucket(decl) for decl in decls]

    def _resolve_bucket(self, decl: BucketDecl) -> BucketSpec:
        attributes = tuple(self._resolve_attribute(a) for a in decl.attributes)
        return BucketSpec(container_column=decl.container_column, attributes=attributes)

    def _resolve_attribute(self, decl: AttributeDecl) -> AttributeSpec:
        """Resolve a type name to a built-in hint or a named transform."""
        if decl.type_name is None:
            return AttributeSpec(name=decl.name)

        # Named transforms shadow built-in type names
        transform = self.transforms.get(decl.type_name)
        if transform is not None:
            return AttributeSpec(name=decl.name, type_hint=TypeHint.CUSTOM, transform=transform)

        type_hint = TYPE_HINT_NAMES.get(decl.type_name)
        if type_hint is None:
            raise ValueError(
                f"Unknown type '{decl.type_name}' for attribute '{decl.name}' "
                f"(line {decl.lineno})"
            )
        return AttributeSpec(name=decl.name, type_hint=type_hint)
