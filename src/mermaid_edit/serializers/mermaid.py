"""Mermaid serializer — the inverse of the flowchart parser.

Output order: header, top-level node declarations, subgraph blocks
(depth-first along parent links), edges, edge property statements, then the
classDef / class / style / linkStyle / click blocks.
"""

from __future__ import annotations

from mermaid_edit.config import SerializerConfig
from mermaid_edit.ir.entities import Edge, Node, SubGraph
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.syntax.patterns import LEGACY_SHAPE_SYNTAX, edge_operator, is_bare_id
from mermaid_edit.syntax.text import escape_quoted, format_edge_text, format_node_text, format_title, needs_quoting
from mermaid_edit.types import LEGACY_SHAPES, NodeShape, shape_name


class MermaidSerializer:
    """Flowchart model to Mermaid text. Never raises for a valid model."""

    def __init__(self, config: SerializerConfig | None = None) -> None:
        self.config = config or SerializerConfig()

    def serialize(self, model: FlowchartModel) -> str:
        indent = self.config.indent
        nodes = model.nodes
        edges = model.edges
        subgraphs = model.subgraphs
        sg_ids = {sg.id for sg in subgraphs}

        lines: list[str] = [f"flowchart {model.direction.value}"]

        for node in nodes:
            if node.parent_id is None or node.parent_id not in sg_ids:
                lines.append(indent + self.node_declaration(node))

        emitted: set[str] = set()
        for sg in subgraphs:
            if sg.parent_id is None or sg.parent_id not in sg_ids:
                self._subgraph_block(sg, nodes, subgraphs, indent, lines, emitted)

        for edge in edges:
            lines.append(indent + self.edge_statement(edge))
        for edge in edges:
            props = self.edge_properties(edge)
            if props:
                lines.append(indent + props)

        if self.config.include_class_defs:
            lines.extend(indent + line for line in self._class_lines(model, nodes, edges))
        if self.config.include_styles:
            lines.extend(indent + line for line in self._style_lines(nodes, edges))
        lines.extend(indent + line for line in self._click_lines(nodes))

        return "\n".join(lines) + "\n"

    # ─── Nodes ───────────────────────────────────────────────────────────

    def node_declaration(self, node: Node) -> str:
        if self._needs_properties(node):
            return self._at_form(node)
        if node.text == node.id and node.shape == NodeShape.Rect:
            return node.id
        start, end = LEGACY_SHAPE_SYNTAX[node.shape]
        return f"{node.id}{start}{format_node_text(node.text, node.shape)}{end}"

    @staticmethod
    def _needs_properties(node: Node) -> bool:
        if node.shape not in LEGACY_SHAPES:
            return True
        extras = (node.icon, node.img, node.form, node.label_pos, node.width, node.height)
        return any(v is not None for v in extras) or (node.tooltip is not None and node.link is None)

    def _at_form(self, node: Node) -> str:
        props = [f"shape: {shape_name(node.shape)}", f'label: "{escape_quoted(node.text)}"']
        if node.icon:
            props.append(f'icon: "{escape_quoted(node.icon)}"')
        if node.img:
            props.append(f'img: "{escape_quoted(node.img)}"')
        if node.form:
            props.append(f"form: {node.form}")
        if node.label_pos:
            props.append(f"pos: {node.label_pos}")
        if node.width is not None:
            props.append(f"w: {node.width}")
        if node.height is not None:
            props.append(f"h: {node.height}")
        if node.tooltip is not None and node.link is None:
            props.append(f'tooltip: "{escape_quoted(node.tooltip)}"')
        return f"{node.id}@{{ {', '.join(props)} }}"

    # ─── Subgraphs ───────────────────────────────────────────────────────

    def _subgraph_block(
        self,
        sg: SubGraph,
        nodes: list[Node],
        subgraphs: list[SubGraph],
        indent: str,
        lines: list[str],
        emitted: set[str],
    ) -> None:
        if sg.id in emitted:
            return
        emitted.add(sg.id)
        inner = indent + self.config.indent
        lines.append(indent + self.subgraph_header(sg))
        if sg.direction is not None:
            lines.append(inner + f"direction {sg.direction.value}")

        by_id = {n.id: n for n in nodes}
        members = [by_id[nid] for nid in sg.node_ids if nid in by_id and by_id[nid].parent_id == sg.id]
        members += [n for n in nodes if n.parent_id == sg.id and n.id not in sg.node_ids]
        for node in members:
            lines.append(inner + self.node_declaration(node))

        for child in subgraphs:
            if child.parent_id == sg.id:
                self._subgraph_block(child, nodes, subgraphs, inner, lines, emitted)
        lines.append(indent + "end")

    @staticmethod
    def subgraph_header(sg: SubGraph) -> str:
        if sg.title == sg.id:
            if needs_quoting(sg.id):
                return f'subgraph "{escape_quoted(sg.id)}"'
            return f"subgraph {sg.id}"
        if not is_bare_id(sg.id) or needs_quoting(sg.id):
            return f'subgraph "{escape_quoted(sg.id)}"[{format_title(sg.title)}]'
        return f"subgraph {sg.id}[{format_title(sg.title)}]"

    # ─── Edges ───────────────────────────────────────────────────────────

    def edge_statement(self, edge: Edge) -> str:
        op = edge_operator(edge.stroke, edge.arrow_start, edge.arrow_end, edge.length)
        if edge.text:
            op += f"|{format_edge_text(edge.text)}|"
        if self._needs_edge_id(edge):
            op = f"{edge.id}@{op}"
        return f"{edge.source} {op} {edge.target}"

    @staticmethod
    def _needs_edge_id(edge: Edge) -> bool:
        return edge.user_defined_id or edge.animate or edge.animation is not None or bool(edge.css_classes)

    @staticmethod
    def edge_properties(edge: Edge) -> str | None:
        props: list[str] = []
        if edge.animate:
            props.append("animate: true")
        if edge.animation:
            props.append(f"animation: {edge.animation}")
        if not props:
            return None
        return f"{edge.id}@{{ {', '.join(props)} }}"

    # ─── Trailing blocks ─────────────────────────────────────────────────

    @staticmethod
    def _class_lines(model: FlowchartModel, nodes: list[Node], edges: list[Edge]) -> list[str]:
        lines = [f"classDef {name} {','.join(styles)}" for name, styles in model.class_defs.items() if styles]
        assigned: dict[str, list[str]] = {}
        for entity in [*nodes, *edges]:
            for cls in entity.css_classes:
                assigned.setdefault(cls, []).append(entity.id)
        lines.extend(f"class {','.join(ids)} {cls}" for cls, ids in assigned.items())
        return lines

    @staticmethod
    def _style_lines(nodes: list[Node], edges: list[Edge]) -> list[str]:
        lines: list[str] = []
        for node in nodes:
            if node.style is None or node.style.is_empty():
                continue
            decls = []
            if node.style.fill is not None:
                decls.append(f"fill:{node.style.fill}")
            if node.style.stroke is not None:
                decls.append(f"stroke:{node.style.stroke}")
            if node.style.stroke_width is not None:
                decls.append(f"stroke-width:{node.style.stroke_width}px")
            if node.style.color is not None:
                decls.append(f"color:{node.style.color}")
            lines.append(f"style {node.id} {','.join(decls)}")
        for index, edge in enumerate(edges):
            if edge.style is None or edge.style.is_empty():
                continue
            decls = []
            if edge.style.stroke is not None:
                decls.append(f"stroke:{edge.style.stroke}")
            if edge.style.stroke_width is not None:
                decls.append(f"stroke-width:{edge.style.stroke_width}px")
            lines.append(f"linkStyle {index} {','.join(decls)}")
        return lines

    @staticmethod
    def _click_lines(nodes: list[Node]) -> list[str]:
        lines: list[str] = []
        for node in nodes:
            if not node.link:
                continue
            line = f'click {node.id} "{node.link.replace(chr(34), "%22")}"'
            if node.tooltip is not None:
                line += f' "{node.tooltip.replace(chr(34), "#quot;")}"'
            if node.link_target:
                line += f" {node.link_target}"
            lines.append(line)
        return lines
