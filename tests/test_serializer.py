"""Tests for mermaid_edit.serializers — FlowchartModel to Mermaid text."""

from mermaid_edit.config import SerializerConfig
from mermaid_edit.ir import FlowchartModel
from mermaid_edit.parsers import parse
from mermaid_edit.serializers import MermaidSerializer, serialize
from mermaid_edit.types import ArrowType, Direction, NodeShape, Stroke


def _model(*nodes):
    model = FlowchartModel()
    for node in nodes:
        model.add_node(node)
    return model


def test_serialize_simple():
    model = _model({"id": "A", "text": "Start", "shape": NodeShape.Rounded}, {"id": "B", "text": "B"})
    model.add_edge({"source": "A", "target": "B", "text": "yes"})
    assert serialize(model) == "flowchart TB\n    A(Start)\n    B\n    A -->|yes| B\n"


def test_serialize_empty_model():
    assert serialize(FlowchartModel()) == "flowchart TB\n"


def test_serialize_direction():
    model = FlowchartModel(Direction.RL)
    assert serialize(model).startswith("flowchart RL\n")


def test_custom_indent():
    model = _model({"id": "A", "text": "A"})
    assert serialize(model, SerializerConfig(indent="  ")) == "flowchart TB\n  A\n"


def test_subgraph_block():
    model = parse(
        "flowchart LR\n"
        "    subgraph g[Group]\n"
        "        direction TB\n"
        "        A --> B\n"
        "    end\n"
        "    C --> A\n"
    )
    expected = (
        "flowchart LR\n"
        "    C\n"
        "    subgraph g[Group]\n"
        "        direction TB\n"
        "        A\n"
        "        B\n"
        "    end\n"
        "    A --> B\n"
        "    C --> A\n"
    )
    assert serialize(model) == expected


def test_nested_subgraphs_indent_deeper():
    model = parse("flowchart TB\n    subgraph outer\n        subgraph inner\n            X\n        end\n    end\n")
    lines = serialize(model).splitlines()
    assert lines[1:] == ["    subgraph outer", "        subgraph inner", "            X", "        end", "    end"]


def test_subgraph_title_needing_quotes():
    model = FlowchartModel()
    model.add_subgraph({"id": "Group (A)"})
    assert '    subgraph "Group (A)"' in serialize(model)


def test_subgraph_id_with_spaces_keeps_its_title():
    model = parse('flowchart TB\n    subgraph "My Group"\n        A\n    end\n')
    model.update_subgraph("My Group", title="Other")
    text = serialize(model)
    assert '    subgraph "My Group"[Other]' in text
    assert [(s.id, s.title, s.node_ids) for s in parse(text).subgraphs] == [("My Group", "Other", ["A"])]


class TestNodeDeclarations:
    def setup_method(self):
        self.serializer = MermaidSerializer()

    def _decl(self, **fields):
        model = _model({"id": "A", "text": "A", **fields})
        return self.serializer.node_declaration(model.get_node("A"))

    def test_bare_id(self):
        assert self._decl() == "A"

    def test_legacy_brackets(self):
        assert self._decl(text="Go", shape=NodeShape.Diamond) == "A{Go}"
        assert self._decl(text="Db", shape=NodeShape.Cylinder) == "A[(Db)]"
        assert self._decl(text="Odd", shape=NodeShape.Odd) == "A>Odd]"

    def test_parens_are_quoted(self):
        assert self._decl(text="Text (with parens)") == 'A["Text (with parens)"]'

    def test_quotes_become_entities(self):
        assert self._decl(text='say "hi"') == 'A["say #quot;hi#quot;"]'

    def test_non_ascii_is_quoted(self):
        assert self._decl(text="Café") == 'A["Café"]'

    def test_extended_shape(self):
        assert self._decl(text="Report", shape=NodeShape.Doc) == 'A@{ shape: doc, label: "Report" }'

    def test_extended_properties(self):
        decl = self._decl(icon="fa:user", form="circle", width=60)
        assert decl == 'A@{ shape: rect, label: "A", icon: "fa:user", form: circle, w: 60 }'

    def test_unknown_shape_name_survives(self):
        assert self._decl(shape="future-shape") == 'A@{ shape: future-shape, label: "A" }'


class TestEdgeStatements:
    def _edge_line(self, **fields):
        model = _model({"id": "A", "text": "A"}, {"id": "B", "text": "B"})
        edge = model.add_edge({"source": "A", "target": "B", **fields})
        return MermaidSerializer().edge_statement(edge)

    def test_operators(self):
        assert self._edge_line() == "A --> B"
        assert self._edge_line(arrow_end=ArrowType.NONE) == "A --- B"
        assert self._edge_line(stroke=Stroke.Thick, arrow_start=ArrowType.Arrow) == "A <==> B"
        assert self._edge_line(stroke=Stroke.Dotted) == "A -.-> B"
        assert self._edge_line(stroke=Stroke.Invisible, arrow_end=ArrowType.NONE) == "A ~~~ B"
        assert self._edge_line(arrow_end=ArrowType.Cross) == "A --x B"

    def test_length(self):
        assert self._edge_line(length=3) == "A ----> B"

    def test_label_escapes_pipes(self):
        assert self._edge_line(text="a | b") == "A -->|a #124; b| B"

    def test_author_id_prefix(self):
        assert self._edge_line(id="e1", user_defined_id=True) == "A e1@--> B"

    def test_generated_id_is_not_written(self):
        assert "@" not in self._edge_line()


def test_edge_properties_statement():
    model = parse("flowchart LR\n    A e1@--> B\n    e1@{ animate: true, animation: slow }\n")
    text = serialize(model)
    assert "    A e1@--> B\n" in text
    assert "    e1@{ animate: true, animation: slow }\n" in text


def test_trailing_blocks_order():
    model = parse(
        "flowchart LR\n"
        "    A --> B\n"
        '    click B "https://example.com" "Go there" _blank\n'
        "    linkStyle 0 stroke:#0f0\n"
        "    style A fill:#f9f,stroke-width:4px\n"
        "    class B hot\n"
        "    classDef hot fill:#f00,color:#fff\n"
    )
    lines = serialize(model).splitlines()
    assert lines[-5:] == [
        "    classDef hot fill:#f00,color:#fff",
        "    class B hot",
        "    style A fill:#f9f,stroke-width:4px",
        "    linkStyle 0 stroke:#0f0",
        '    click B "https://example.com" "Go there" _blank',
    ]


def test_styles_can_be_left_out():
    model = parse("flowchart LR\n    A --> B\n    style A fill:#f9f\n    classDef hot fill:#f00\n    class A hot\n")
    text = serialize(model, SerializerConfig(include_styles=False, include_class_defs=False))
    assert "style" not in text
    assert "class" not in text


def test_tooltip_without_link_uses_properties():
    model = _model({"id": "A", "text": "A", "tooltip": "Hint"})
    assert 'A@{ shape: rect, label: "A", tooltip: "Hint" }' in serialize(model)
