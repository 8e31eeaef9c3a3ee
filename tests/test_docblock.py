"""
tests/test_docblock.py
Unit tests for modelaudit.docblock.DocblockPropertyParser.
"""

from __future__ import annotations

from typing import Dict

import pytest

from modelaudit.docblock import DocblockPropertyParser
from modelaudit.models import ParsedProperty


@pytest.fixture()
def parser() -> DocblockPropertyParser:
    return DocblockPropertyParser()


def _parse(parser: DocblockPropertyParser, *lines: str) -> Dict[str, ParsedProperty]:
    return parser.parse("\n".join(lines))


class TestDocblockParser:
    """@property tag extraction."""

    @pytest.mark.parametrize("text", [None, "", "Just a description."])
    def test_nothing_to_parse(self, parser: DocblockPropertyParser, text: str) -> None:
        assert parser.parse(text) == {}

    def test_simple_property(self, parser: DocblockPropertyParser) -> None:
        props = _parse(parser, "@property int $id")
        assert props == {"id": ParsedProperty(name="id", types=("int",), nullable=False, raw="int")}

    def test_question_mark_marks_nullable(self, parser: DocblockPropertyParser) -> None:
        prop = _parse(parser, "@property ?string $note")["note"]
        assert prop.nullable is True
        assert prop.types == ("string",)
        assert prop.raw == "?string"

    def test_null_alternative_marks_nullable(self, parser: DocblockPropertyParser) -> None:
        prop = _parse(parser, "@property int|null $qty")["qty"]
        assert prop.nullable is True
        assert prop.types == ("int",)

    def test_only_null(self, parser: DocblockPropertyParser) -> None:
        prop = _parse(parser, "@property null $gone")["gone"]
        assert prop.nullable is True
        assert prop.types == ()

    def test_leading_backslashes_are_stripped(self, parser: DocblockPropertyParser) -> None:
        prop = _parse(parser, "@property \\Carbon\\Carbon|null $created_at")["created_at"]
        assert prop.types == ("Carbon\\Carbon",)
        assert prop.nullable is True

    def test_duplicate_alternatives_are_collapsed(self, parser: DocblockPropertyParser) -> None:
        prop = _parse(parser, "@property int|string|int $code")["code"]
        assert prop.types == ("int", "string")

    @pytest.mark.parametrize(
        "line",
        [
            "@property-read int $id",
            "@property-write int $id",
            "@PROPERTY int $id",
            " * @property int $id",
            "\t**  @property int $id  ",
        ],
    )
    def test_tag_variants_and_decoration(self, parser: DocblockPropertyParser, line: str) -> None:
        assert list(_parse(parser, line)) == ["id"]

    @pytest.mark.parametrize(
        "line",
        [
            "@property int id",
            "@property $id",
            "@param int $id",
            "@property int $1abc",
            "text before @property int $id",
        ],
    )
    def test_malformed_lines_are_ignored(self, parser: DocblockPropertyParser, line: str) -> None:
        assert _parse(parser, line) == {}

    def test_repeated_name_replaces_in_place(self, parser: DocblockPropertyParser) -> None:
        props = _parse(
            parser,
            "@property int $a",
            "@property string $b",
            "@property ?bool $a",
        )
        assert list(props) == ["a", "b"]
        assert props["a"].types == ("bool",)
        assert props["a"].nullable is True

    def test_multiline_docstring(self, parser: DocblockPropertyParser) -> None:
        text = """
        An invoice.

        @property int $id
        @property \\decimal $total
        @property-read ?\\datetime $paid_at
        """
        props = parser.parse(text)
        assert list(props) == ["id", "total", "paid_at"]
        assert props["total"].types == ("decimal",)
        assert props["paid_at"].types == ("datetime",)
        assert props["paid_at"].nullable is True
