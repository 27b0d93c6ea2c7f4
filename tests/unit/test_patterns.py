"""Tests for mermaid_edit.syntax.patterns — shape and edge rule tables."""

import pytest

from mermaid_edit.syntax.patterns import (
    EDGE_TOKEN_RE,
    SHAPE_PATTERNS,
    edge_length,
    edge_operator,
    is_bare_id,
    match_edge_operator,
    match_shape,
)
from mermaid_edit.types import LEGACY_SHAPES, ArrowType, NodeShape, Stroke


class TestShapeTable:
    def test_every_legacy_shape_has_delimiters(self):
        assert {p.shape for p in SHAPE_PATTERNS} == set(LEGACY_SHAPES)

    def test_triple_paren_before_double_before_single(self):
        order = [p.start for p in SHAPE_PATTERNS]
        assert order.index("(((") < order.index("((") < order.index("(")

    @pytest.mark.parametrize(
        "token,shape",
        [
            ("A[text]", NodeShape.Rect),
            ("A(text)", NodeShape.Rounded),
            ("A([text])", NodeShape.Stadium),
            ("A[[text]]", NodeShape.Subroutine),
            ("A[(text)]", NodeShape.Cylinder),
            ("A((text))", NodeShape.Circle),
            ("A(((text)))", NodeShape.DoubleCircle),
            ("A{text}", NodeShape.Diamond),
            ("A{{text}}", NodeShape.Hexagon),
            ("A[/text/]", NodeShape.Trapezoid),
            ("A[\\text\\]", NodeShape.InvTrapezoid),
            ("A[/text\\]", NodeShape.LeanRight),
            ("A[\\text/]", NodeShape.LeanLeft),
            ("A>text]", NodeShape.Odd),
        ],
    )
    def test_match_shape(self, token, shape):
        assert match_shape(token) == ("A", "text", shape)

    def test_match_shape_keeps_quotes_for_caller(self):
        assert match_shape('A["x (y)"]') == ("A", '"x (y)"', NodeShape.Rect)

    def test_bare_token_is_not_a_shape(self):
        assert match_shape("Alpha") is None

    def test_bare_ids(self):
        assert is_bare_id("node_1")
        assert is_bare_id("my-node")
        assert not is_bare_id("two words")
        assert not is_bare_id("A[x]")


class TestEdgeRules:
    @pytest.mark.parametrize(
        "op,stroke,start,end",
        [
            ("-->", Stroke.Normal, ArrowType.NONE, ArrowType.Arrow),
            ("---", Stroke.Normal, ArrowType.NONE, ArrowType.NONE),
            ("<-->", Stroke.Normal, ArrowType.Arrow, ArrowType.Arrow),
            ("<--", Stroke.Normal, ArrowType.Arrow, ArrowType.NONE),
            ("--o", Stroke.Normal, ArrowType.NONE, ArrowType.Circle),
            ("--x", Stroke.Normal, ArrowType.NONE, ArrowType.Cross),
            ("o--o", Stroke.Normal, ArrowType.Circle, ArrowType.Circle),
            ("x--x", Stroke.Normal, ArrowType.Cross, ArrowType.Cross),
            ("==>", Stroke.Thick, ArrowType.NONE, ArrowType.Arrow),
            ("===", Stroke.Thick, ArrowType.NONE, ArrowType.NONE),
            ("<==>", Stroke.Thick, ArrowType.Arrow, ArrowType.Arrow),
            ("-.->", Stroke.Dotted, ArrowType.NONE, ArrowType.Arrow),
            ("-.-", Stroke.Dotted, ArrowType.NONE, ArrowType.NONE),
            ("<-.->", Stroke.Dotted, ArrowType.Arrow, ArrowType.Arrow),
            ("~~~", Stroke.Invisible, ArrowType.NONE, ArrowType.NONE),
        ],
    )
    def test_symbol_operators(self, op, stroke, start, end):
        m = match_edge_operator(op)
        assert m is not None
        assert (m.stroke, m.arrow_start, m.arrow_end) == (stroke, start, end)
        assert m.text is None
        assert m.operator == op

    @pytest.mark.parametrize(
        "token,stroke,text",
        [
            ("-- yes -->", Stroke.Normal, "yes"),
            ("== heavy ==>", Stroke.Thick, "heavy"),
            ("-. maybe .->", Stroke.Dotted, "maybe"),
        ],
    )
    def test_text_operators(self, token, stroke, text):
        m = match_edge_operator(token)
        assert m is not None
        assert m.stroke == stroke
        assert m.text == text
        assert m.arrow_end == ArrowType.Arrow
        assert "|" not in m.operator and text not in m.operator

    def test_text_operator_normalises_to_symbol_form(self):
        assert match_edge_operator("-- yes -->").operator == "-->"

    def test_unknown_operator(self):
        assert match_edge_operator("->") is None


class TestEdgeLength:
    @pytest.mark.parametrize(
        "op,stroke,end,length",
        [
            ("-->", Stroke.Normal, ArrowType.Arrow, 1),
            ("--->", Stroke.Normal, ArrowType.Arrow, 2),
            ("---->", Stroke.Normal, ArrowType.Arrow, 3),
            ("---", Stroke.Normal, ArrowType.NONE, 1),
            ("----", Stroke.Normal, ArrowType.NONE, 2),
            ("==>", Stroke.Thick, ArrowType.Arrow, 1),
            ("====>", Stroke.Thick, ArrowType.Arrow, 3),
            ("-.->", Stroke.Dotted, ArrowType.Arrow, 1),
            ("-...->", Stroke.Dotted, ArrowType.Arrow, 3),
        ],
    )
    def test_length(self, op, stroke, end, length):
        assert edge_length(op, stroke, end) == length

    def test_operator_is_inverse_of_length(self):
        for length in (1, 2, 3):
            for stroke in (Stroke.Normal, Stroke.Thick, Stroke.Dotted):
                for end in (ArrowType.Arrow, ArrowType.NONE, ArrowType.Circle):
                    op = edge_operator(stroke, ArrowType.NONE, end, length)
                    m = match_edge_operator(op)
                    assert m is not None, op
                    assert (m.stroke, m.arrow_end, m.length) == (stroke, end, length)

    def test_length_never_below_one(self):
        assert edge_operator(Stroke.Normal, ArrowType.NONE, ArrowType.Arrow, 0) == "-->"


class TestEdgeTokenScanner:
    def test_longest_operator_wins(self):
        m = EDGE_TOKEN_RE.match("<--> B")
        assert m.group("op") == "<-->"

    def test_pipe_label(self):
        m = EDGE_TOKEN_RE.match("-->|yes| B")
        assert m.group("op") == "-->"
        assert m.group("label") == "yes"

    def test_pipe_label_after_space(self):
        m = EDGE_TOKEN_RE.match("--> |yes| B")
        assert m.group("label") == "yes"

    def test_edge_id_prefix(self):
        m = EDGE_TOKEN_RE.match("e1@--> B")
        assert m.group("edge_id") == "e1"
        assert m.group("op") == "-->"
