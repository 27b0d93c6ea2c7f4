"""Tests for mermaid_edit.parsers — flowchart statements into a FlowchartModel."""

import pytest

from mermaid_edit.errors import UnsupportedDiagramError
from mermaid_edit.parsers import detect_type, parse
from mermaid_edit.parsers.flowchart import split_ampersands, split_statement
from mermaid_edit.types import ArrowType, Direction, NodeShape, Stroke


def _node(model, node_id):
    node = model.get_node(node_id)
    assert node is not None, node_id
    return node


def test_parse_simple_chain():
    input = "graph TD\n    A --> B --> C\n"
    model = parse(input)
    assert model.direction == Direction.TB
    assert [n.id for n in model.nodes] == ["A", "B", "C"]
    assert [(e.source, e.target) for e in model.edges] == [("A", "B"), ("B", "C")]
    assert model.nodes[0].text == "A"


def test_parse_without_spaces():
    model = parse("flowchart LR\nA-->B\n")
    assert model.direction == Direction.LR
    assert [(e.source, e.target) for e in model.edges] == [("A", "B")]


def test_parse_node_with_label():
    input = "graph TD\n    A[Start] --> B[End]\n"
    model = parse(input)
    assert _node(model, "A").text == "Start"
    assert _node(model, "A").shape == NodeShape.Rect
    assert _node(model, "B").text == "End"


def test_parse_shapes():
    input = "graph TD\n    A[Rect] --> B(Round) --> C{Diamond} --> D((Circle)) --> E>Flag]\n"
    model = parse(input)
    assert _node(model, "A").shape == NodeShape.Rect
    assert _node(model, "B").shape == NodeShape.Rounded
    assert _node(model, "C").shape == NodeShape.Diamond
    assert _node(model, "D").shape == NodeShape.Circle
    assert _node(model, "E").shape == NodeShape.Odd
    assert _node(model, "E").text == "Flag"
    assert model.edge_count == 4


def test_parse_extended_shape():
    input = 'flowchart TD\n    R@{ shape: doc, label: "Report" } --> S@{ shape: tri }\n'
    model = parse(input)
    assert _node(model, "R").shape == NodeShape.Doc
    assert _node(model, "R").text == "Report"
    assert _node(model, "S").shape == NodeShape.Triangle
    assert _node(model, "S").text == "S"


def test_parse_node_properties():
    input = 'flowchart TD\n    I@{ shape: rect, icon: "fa:user", pos: b, w: 60, h: 40 }\n'
    node = _node(parse(input), "I")
    assert node.icon == "fa:user"
    assert node.label_pos == "b"
    assert (node.width, node.height) == (60, 40)


def test_later_sighting_refines_node():
    input = "graph TD\n    A --> B\n    A[Hello] --> C\n    A --> D\n"
    model = parse(input)
    assert _node(model, "A").text == "Hello"
    assert model.node_count == 4


def test_quoted_text_keeps_operators():
    model = parse('flowchart TD\n    A["a --> b"] --> B\n')
    assert _node(model, "A").text == "a --> b"
    assert model.edge_count == 1


def test_entity_codes_are_decoded():
    model = parse('flowchart TD\n    A["say #quot;hi#quot;"]\n')
    assert _node(model, "A").text == 'say "hi"'


class TestEdges:
    def test_pipe_label(self):
        model = parse("graph TD\n    A -->|yes| B\n")
        assert model.edges[0].text == "yes"

    def test_text_label(self):
        model = parse("graph TD\n    A -- yes --> B\n")
        edge = model.edges[0]
        assert edge.text == "yes"
        assert (edge.source, edge.target) == ("A", "B")

    def test_quoted_text_label_keeps_operators(self):
        model = parse('graph TD\n    A -- "a --> b" --> B\n')
        assert [(e.source, e.target, e.text) for e in model.edges] == [("A", "B", "a --> b")]

    def test_both_label_forms_share_an_id(self):
        piped = parse("graph TD\n    A -->|yes| B\n").edges[0]
        spaced = parse("graph TD\n    A -- yes --> B\n").edges[0]
        assert piped.id == spaced.id

    @pytest.mark.parametrize(
        "op,stroke,start,end",
        [
            ("---", Stroke.Normal, ArrowType.NONE, ArrowType.NONE),
            ("==>", Stroke.Thick, ArrowType.NONE, ArrowType.Arrow),
            ("-.->", Stroke.Dotted, ArrowType.NONE, ArrowType.Arrow),
            ("~~~", Stroke.Invisible, ArrowType.NONE, ArrowType.NONE),
            ("--o", Stroke.Normal, ArrowType.NONE, ArrowType.Circle),
            ("--x", Stroke.Normal, ArrowType.NONE, ArrowType.Cross),
            ("<-->", Stroke.Normal, ArrowType.Arrow, ArrowType.Arrow),
        ],
    )
    def test_operators(self, op, stroke, start, end):
        edge = parse(f"flowchart LR\n    A {op} B\n").edges[0]
        assert (edge.stroke, edge.arrow_start, edge.arrow_end) == (stroke, start, end)

    def test_dotted_text_label(self):
        edge = parse("flowchart LR\n    A -. maybe .-> B\n").edges[0]
        assert edge.stroke == Stroke.Dotted
        assert edge.text == "maybe"

    def test_length(self):
        model = parse("flowchart LR\n    A ---> B\n    B ----> C\n")
        assert [e.length for e in model.edges] == [2, 3]

    def test_bidirectional_is_one_edge(self):
        model = parse("flowchart LR\n    A <--> B\n")
        assert model.edge_count == 1
        assert model.edges[0].is_bidirectional

    def test_two_directed_edges_are_two_edges(self):
        model = parse("flowchart LR\n    A --> B\n    B --> A\n")
        assert model.edge_count == 2
        assert not any(e.is_bidirectional for e in model.edges)

    def test_fan_out_is_cartesian_product(self):
        model = parse("flowchart LR\n    A & B --> C & D\n")
        pairs = {(e.source, e.target) for e in model.edges}
        assert pairs == {("A", "C"), ("A", "D"), ("B", "C"), ("B", "D")}

    def test_ampersand_inside_brackets_is_text(self):
        model = parse('flowchart LR\n    A["x & y"] --> B\n')
        assert model.node_count == 2
        assert _node(model, "A").text == "x & y"

    def test_duplicate_edges_get_dup_suffix(self):
        model = parse("flowchart LR\n    A --> B\n    A --> B\n    A --> B\n")
        ids = [e.id for e in model.edges]
        assert len(set(ids)) == 3
        assert ids[1] == f"{ids[0]}-dup1"
        assert ids[2] == f"{ids[0]}-dup2"

    def test_ids_are_deterministic(self):
        src = "flowchart LR\n    A --> B\n    B -->|x| C\n"
        assert [e.id for e in parse(src).edges] == [e.id for e in parse(src).edges]

    def test_author_edge_id_and_properties(self):
        model = parse("flowchart LR\n    A e1@--> B\n    e1@{ animate: true, animation: fast }\n")
        edge = model.get_edge("e1")
        assert edge is not None
        assert edge.user_defined_id
        assert edge.animate
        assert edge.animation == "fast"


class TestSubgraphs:
    def test_subgraph_membership(self):
        input = "graph TD\n    subgraph one[First]\n        A --> B\n    end\n    C --> A\n"
        model = parse(input)
        sg = model.get_subgraph("one")
        assert sg is not None
        assert sg.title == "First"
        assert sg.node_ids == ["A", "B"]
        assert _node(model, "A").parent_id == "one"
        assert _node(model, "C").parent_id is None

    def test_nested_subgraphs_and_direction(self):
        input = (
            "flowchart TB\n"
            "    subgraph outer\n"
            "        subgraph inner\n"
            "            direction LR\n"
            "            X\n"
            "        end\n"
            "    end\n"
        )
        model = parse(input)
        inner = model.get_subgraph("inner")
        assert inner.parent_id == "outer"
        assert inner.direction == Direction.LR
        assert model.direction == Direction.TB
        assert _node(model, "X").parent_id == "inner"

    def test_quoted_title(self):
        model = parse('flowchart TB\n    subgraph "My Group"\n        A\n    end\n')
        assert model.get_subgraph("My Group").title == "My Group"

    def test_quoted_id_with_title(self):
        model = parse('flowchart TB\n    subgraph "My Group"[Other]\n        A\n    end\n')
        sg = model.get_subgraph("My Group")
        assert sg.title == "Other"
        assert sg.node_ids == ["A"]

    def test_anonymous_subgraph(self):
        model = parse("flowchart TB\n    subgraph\n        A\n    end\n")
        assert model.has_subgraph("subGraph0")

    def test_unmatched_end_is_ignored(self):
        model = parse("flowchart TB\n    end\n    A --> B\n")
        assert model.edge_count == 1


class TestStyling:
    def test_class_def_and_assignment(self):
        input = "flowchart TB\n    A --> B\n    classDef red fill:#f00,stroke:#000\n    class A,B red\n"
        model = parse(input)
        assert model.get_class_def("red") == ["fill:#f00", "stroke:#000"]
        assert _node(model, "A").css_classes == ["red"]
        assert _node(model, "B").css_classes == ["red"]

    def test_inline_class_suffix(self):
        model = parse("flowchart TB\n    A:::blue --> B\n")
        assert _node(model, "A").css_classes == ["blue"]
        assert _node(model, "A").text == "A"

    def test_style_statement(self):
        model = parse("flowchart TB\n    A\n    style A fill:#f9f,stroke:#333,stroke-width:4px\n")
        style = _node(model, "A").style
        assert (style.fill, style.stroke, style.stroke_width) == ("#f9f", "#333", 4)

    def test_link_style(self):
        model = parse("flowchart TB\n    A --> B\n    B --> C\n    linkStyle 1 stroke:#ff3,stroke-width:2px\n")
        assert model.edges[0].style is None
        assert model.edges[1].style.stroke == "#ff3"
        assert model.edges[1].style.stroke_width == 2

    def test_click(self):
        model = parse('flowchart TB\n    A\n    click A "https://example.com" "Open it" _blank\n')
        node = _node(model, "A")
        assert node.link == "https://example.com"
        assert node.tooltip == "Open it"
        assert node.link_target == "_blank"


class TestBestEffort:
    def test_comments_are_ignored(self):
        model = parse("%% heading\nflowchart TB\n    A --> B %% trailing\n")
        assert model.node_count == 2

    def test_unreadable_lines_are_skipped(self):
        model = parse("flowchart TB\n    A --> B\n    !!! not a statement\n    B --> C\n")
        assert [n.id for n in model.nodes] == ["A", "B", "C"]

    def test_headerless_text(self):
        model = parse("A --> B\n")
        assert model.edge_count == 1

    def test_statement_on_declaration_line(self):
        model = parse("graph LR; A-->B\n")
        assert model.direction == Direction.LR
        assert [(e.source, e.target) for e in model.edges] == [("A", "B")]

    def test_front_matter(self):
        model = parse("---\ntitle: Demo\n---\nflowchart LR\n    A --> B\n")
        assert model.direction == Direction.LR
        assert model.node_count == 2

    def test_empty_source(self):
        model = parse("")
        assert model.node_count == 0
        assert model.direction == Direction.TB

    def test_trailing_semicolons(self):
        model = parse("flowchart TB\n    A --> B;\n")
        assert [n.id for n in model.nodes] == ["A", "B"]


class TestDiagramTypes:
    def test_flowchart_is_editable(self):
        info = detect_type("graph LR\nA-->B")
        assert info.type == "flowchart"
        assert info.is_editable

    def test_other_types_are_detected(self):
        info = detect_type("sequenceDiagram\n    A->>B: hi\n")
        assert info.type == "sequenceDiagram"
        assert not info.is_editable

    def test_other_types_parse_to_an_empty_flowchart(self):
        model = parse("sequenceDiagram\n    A->>B: hi\n")
        assert model.node_count == 0
        assert model.edge_count == 0

    def test_strict_parse_rejects_other_types(self):
        with pytest.raises(UnsupportedDiagramError):
            parse("pie title Pets\n    \"Dogs\" : 3\n", strict=True)


class TestScanner:
    def test_split_statement(self):
        parts = split_statement("A[x] -->|y| B")
        assert parts[0] == "A[x]"
        assert parts[1].op == "-->"
        assert parts[1].label == "y"
        assert parts[2] == "B"

    def test_split_ampersands(self):
        assert split_ampersands("A & B[x & y] & C") == ["A", "B[x & y]", "C"]
