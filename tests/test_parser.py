"""Tests for the bucket declaration DSL."""

import pytest

from typed_buckets.parsing import BucketLexer, BucketParser
from typed_buckets.types import TypeHint


def aka(value):
    return "aka " + value


class TestBucketLexer:
    """Tests for the bucket lexer."""

    def test_tokens(self):
        lexer = BucketLexer()
        lexer.build()
        tokens = lexer.tokenize("bucket extras { rating: integer, }")
        assert [t.type for t in tokens] == [
            "BUCKET",
            "IDENTIFIER",
            "LBRACE",
            "IDENTIFIER",
            "COLON",
            "IDENTIFIER",
            "COMMA",
            "RBRACE",
        ]

    def test_comments_are_ignored(self):
        lexer = BucketLexer()
        lexer.build()
        tokens = lexer.tokenize("# a comment\nbucket extras {}")
        assert [t.type for t in tokens] == ["BUCKET", "IDENTIFIER", "LBRACE", "RBRACE"]
        assert tokens[0].lineno == 2

    def test_illegal_character(self):
        lexer = BucketLexer()
        lexer.build()
        with pytest.raises(SyntaxError, match="Illegal character"):
            lexer.tokenize("bucket extras { rating; }")


class TestBucketParser:
    """Tests for the bucket parser."""

    def test_parse_bucket(self):
        parser = BucketParser(transforms={"aka": aka})
        specs = parser.parse("""
            bucket extras {
                best_served_with
                rating: integer,
                vegetarian: boolean
                nickname: aka
            }
        """)

        assert len(specs) == 1
        spec = specs[0]
        assert spec.container_column == "extras"
        assert spec.attribute_names == ["best_served_with", "rating", "vegetarian", "nickname"]
        assert [a.type_hint for a in spec.attributes] == [
            TypeHint.STRING,
            TypeHint.INTEGER,
            TypeHint.BOOLEAN,
            TypeHint.CUSTOM,
        ]
        assert spec.attributes[3].coerce("Bucket") == "aka Bucket"

    def test_multiple_buckets(self):
        specs = BucketParser().parse("""
            bucket extras { a, b: integer, }
            bucket notes { c: string }
        """)
        assert [s.container_column for s in specs] == ["extras", "notes"]
        assert specs[0].attribute_names == ["a", "b"]
        assert specs[1].attributes[0].type_hint == TypeHint.STRING

    def test_empty_bucket_and_empty_input(self):
        parser = BucketParser()
        assert parser.parse("bucket extras {}")[0].attributes == ()
        assert parser.parse("") == []
        assert parser.parse("# nothing here\n") == []

    def test_transform_shadows_builtin_name(self):
        def integer(value):
            return "custom"

        spec = BucketParser(transforms={"integer": integer}).parse("bucket x { n: integer }")[0]
        assert spec.attributes[0].type_hint == TypeHint.CUSTOM
        assert spec.attributes[0].coerce("5") == "custom"

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown type 'money'.*line 3"):
            BucketParser().parse("""
                bucket extras {
                    price: money
                }
            """)

    def test_syntax_error(self):
        with pytest.raises(SyntaxError, match="line 1"):
            BucketParser().parse("bucket extras { a: }")

    def test_unterminated(self):
        with pytest.raises(SyntaxError, match="end of input"):
            BucketParser().parse("bucket extras { a")

    def test_parser_is_reusable(self):
        parser = BucketParser()
        parser.parse("bucket a { x }")
        with pytest.raises(SyntaxError, match="line 2"):
            parser.parse("bucket b {\n : }")
