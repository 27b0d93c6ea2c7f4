"""Flowchart parser — line-oriented statement dispatch.

Parses Mermaid flowchart/graph DSL into a FlowchartModel. Parsing is best
effort: a line that matches no statement form is skipped (logged at DEBUG)
and never fails the parse.
"""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from mermaid_edit.ir.entities import LINK_TARGETS, Edge, EdgeStyle, Node, NodeStyle, SubGraph
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.parsers.preprocess import preprocess
from mermaid_edit.syntax.edge_id import dedupe_edge_id, generate_edge_id
from mermaid_edit.syntax.patterns import (
    EDGE_TOKEN_RE,
    TEXT_EDGE_TOKEN_RES,
    EdgeMatch,
    is_bare_id,
    match_edge_operator,
    match_shape,
)
from mermaid_edit.syntax.text import decode_entities, parse_at_properties, unquote_text
from mermaid_edit.types import Direction, NodeShape, resolve_shape

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(
    r"^(?:flowchart|graph)(?:-elk)?(?:\s+(?P<dir>\w+))?\s*(?:;(?P<rest>.*))?$", re.IGNORECASE
)
_SUBGRAPH_RE = re.compile(r"^subgraph(?:\s+(?P<rest>.*))?$")
_SUBGRAPH_TITLED_RE = re.compile(r'^(?:"(?P<quoted_id>[^"]*)"|(?P<id>[^\s\[\]"]+))\s*\[(?P<title>.*)\]$')
_DIRECTION_RE = re.compile(r"^direction\s+(?P<dir>\w+)$")
_CLASS_DEF_RE = re.compile(r"^classDef\s+(?P<names>\S+)\s+(?P<styles>.+)$")
_CLASS_RE = re.compile(r"^class\s+(?P<ids>.+?)\s+(?P<classes>\S+)$")
_STYLE_RE = re.compile(r"^style\s+(?P<id>\S+)\s+(?P<styles>.+)$")
_LINK_STYLE_RE = re.compile(r"^linkStyle\s+(?P<indices>default|\d+(?:\s*,\s*\d+)*)\s+(?P<styles>.+)$")
_CLICK_RE = re.compile(
    r"^click\s+(?P<id>\S+)\s+(?:href\s+)?\"(?P<url>[^\"]*)\""
    r"(?:\s+\"(?P<tooltip>[^\"]*)\")?"
    rf"(?:\s+(?P<target>{'|'.join(LINK_TARGETS)}))?$"
)
_EDGE_PROPS_RE = re.compile(r"^(?P<id>[\w-]+)@\{(?P<body>.*)\}$")
_AT_NODE_RE = re.compile(r"^(?P<id>[^\s@\[\](){}]+)@\{(?P<body>.*)\}$", re.DOTALL)
_CLASS_SUFFIX_RE = re.compile(r":::(?P<classes>[\w-]+(?:,[\w-]+)*)$")
_INT_RE = re.compile(r"-?\d+")


@dataclass
class ParseContext:
    """Per-parse state, threaded through every statement handler."""

    direction: Direction = Direction.TB
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    subgraphs: dict[str, SubGraph] = field(default_factory=dict)
    class_defs: dict[str, list[str]] = field(default_factory=dict)
    subgraph_stack: list[str] = field(default_factory=list)
    edge_ids: set[str] = field(default_factory=set)

    @property
    def current_subgraph(self) -> str | None:
        return self.subgraph_stack[-1] if self.subgraph_stack else None

    def find_edge(self, edge_id: str) -> Edge | None:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def to_model(self) -> FlowchartModel:
        return FlowchartModel.from_data(
            {
                "direction": self.direction.value,
                "nodes": [n.to_data() for n in self.nodes.values()],
                "edges": [e.to_data() for e in self.edges],
                "subgraphs": [s.to_data() for s in self.subgraphs.values()],
                "class_defs": self.class_defs,
            }
        )


@dataclass
class _EdgeToken:
    op: str
    label: str | None
    edge_id: str | None


# ─── Statement scanning ─────────────────────────────────────────────────────


def _match_edge_at(line: str, pos: int) -> tuple[_EdgeToken, int] | None:
    """Try to read an edge operator starting exactly at ``pos``.

    Text-bearing forms go first: the symbol-only pattern would read the
    leading ``--`` of ``-- text -->`` as a complete operator.
    """
    for pattern in TEXT_EDGE_TOKEN_RES:
        m = pattern.match(line, pos)
        if m and match_edge_operator(m.group(0)) is not None:
            return _EdgeToken(m.group(0), None, None), m.end()
    m = EDGE_TOKEN_RE.match(line, pos)
    if m:
        return _EdgeToken(m.group("op"), m.group("label"), m.group("edge_id")), m.end()
    return None


def split_statement(line: str) -> list[str | _EdgeToken]:
    """Split a statement into alternating node text and edge tokens.

    Operators are only recognised outside brackets and quoted strings, so
    ``A["a --> b"]`` stays a single node token.
    """
    parts: list[str | _EdgeToken] = []
    depth = 0
    start = 0
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '"':
            close = line.find('"', i + 1)
            i = len(line) if close == -1 else close + 1
            continue
        if depth == 0:
            found = _match_edge_at(line, i)
            if found is not None:
                token, end = found
                parts.append(line[start:i].strip())
                parts.append(token)
                i = start = end
                continue
            # `id>text]` opens the odd shape.
            if ch == ">" and i > start and (line[i - 1].isalnum() or line[i - 1] == "_"):
                depth += 1
                i += 1
                continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(0, depth - 1)
        i += 1
    parts.append(line[start:].strip())
    return parts


def split_ampersands(token: str) -> list[str]:
    """Split ``A & B[x & y]`` on the ``&`` separators outside brackets."""
    pieces: list[str] = []
    depth = 0
    buf: list[str] = []
    quoted = False
    for ch in token:
        if ch == '"':
            quoted = not quoted
        elif not quoted:
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                depth = max(0, depth - 1)
            elif ch == "&" and depth == 0:
                pieces.append("".join(buf).strip())
                buf = []
                continue
        buf.append(ch)
    pieces.append("".join(buf).strip())
    return [p for p in pieces if p]


def _parse_declarations(text: str) -> dict[str, str]:
    decls: dict[str, str] = {}
    for part in text.rstrip(";").split(","):
        key, sep, value = part.partition(":")
        if sep and key.strip():
            decls[key.strip()] = value.strip()
    return decls


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    m = _INT_RE.search(value)
    return int(m.group(0)) if m else None


def _parse_subgraph_header(rest: str, index: int) -> tuple[str, str]:
    """Return (id, title) for the text after ``subgraph``."""
    rest = rest.strip()
    if not rest:
        return f"subGraph{index}", f"subGraph{index}"
    m = _SUBGRAPH_TITLED_RE.match(rest)
    if m:
        sg_id = m.group("id") if m.group("quoted_id") is None else decode_entities(m.group("quoted_id"))
        title = unquote_text(m.group("title"))
        return sg_id, title or sg_id
    if rest.startswith('"') or rest.startswith("`"):
        title = unquote_text(rest)
        return title, title
    return rest, rest


# ─── Parser ─────────────────────────────────────────────────────────────────


class FlowchartParser:
    """Flowchart/graph diagram parser."""

    def __init__(self) -> None:
        self._handlers: list[tuple[re.Pattern[str], Callable[[re.Match[str], ParseContext], None]]] = [
            (_SUBGRAPH_RE, self._subgraph),
            (_DIRECTION_RE, self._direction),
            (_CLASS_DEF_RE, self._class_def),
            (_CLASS_RE, self._class_assign),
            (_STYLE_RE, self._style),
            (_LINK_STYLE_RE, self._link_style),
            (_CLICK_RE, self._click),
        ]

    def parse(self, src: str) -> FlowchartModel:
        ctx = ParseContext()
        lines = [line.rstrip(";").strip() for line in preprocess(src)]
        for line in lines[self._header(lines, ctx) :]:
            if line:
                self._statement(line, ctx)
        return ctx.to_model()

    def _header(self, lines: list[str], ctx: ParseContext) -> int:
        """Find the declaration line; returns the index body parsing starts from."""
        for i, line in enumerate(lines):
            m = _HEADER_RE.match(line)
            if m:
                ctx.direction = Direction.from_token(m.group("dir")) or Direction.TB
                for skipped in lines[:i]:
                    logger.debug("skipping line before declaration: %r", skipped)
                # A statement may share the declaration line: `graph LR; A --> B`.
                lines[i] = (m.group("rest") or "").strip().rstrip(";").strip()
                return i
        return 0

    def _statement(self, line: str, ctx: ParseContext) -> None:
        if line == "end":
            if ctx.subgraph_stack:
                ctx.subgraph_stack.pop()
            else:
                logger.debug("skipping unmatched 'end'")
            return
        for pattern, handler in self._handlers:
            m = pattern.match(line)
            if m:
                handler(m, ctx)
                return
        m = _EDGE_PROPS_RE.match(line)
        if m:
            edge = ctx.find_edge(m.group("id"))
            if edge is not None:
                self._edge_props(edge, m.group("body"))
                return
        self._node_edge_statement(line, ctx)

    # ─── Keyword statements ─────────────────────────────────────────────

    def _subgraph(self, m: re.Match[str], ctx: ParseContext) -> None:
        sg_id, title = _parse_subgraph_header(m.group("rest") or "", len(ctx.subgraphs))
        if sg_id not in ctx.subgraphs:
            ctx.subgraphs[sg_id] = SubGraph(id=sg_id, title=title, parent_id=ctx.current_subgraph)
        ctx.subgraph_stack.append(sg_id)

    def _direction(self, m: re.Match[str], ctx: ParseContext) -> None:
        direction = Direction.from_token(m.group("dir"))
        if direction is None:
            logger.debug("skipping unknown direction %r", m.group("dir"))
            return
        if ctx.current_subgraph is not None:
            ctx.subgraphs[ctx.current_subgraph].direction = direction
        else:
            ctx.direction = direction

    def _class_def(self, m: re.Match[str], ctx: ParseContext) -> None:
        styles = [s.strip() for s in m.group("styles").rstrip(";").split(",") if s.strip()]
        for name in m.group("names").split(","):
            if name:
                ctx.class_defs[name] = list(styles)

    def _class_assign(self, m: re.Match[str], ctx: ParseContext) -> None:
        classes = [c for c in m.group("classes").split(",") if c]
        for entity_id in (s.strip() for s in m.group("ids").split(",")):
            target = ctx.nodes.get(entity_id) or ctx.find_edge(entity_id)
            if target is None:
                logger.debug("class assignment to unknown id %r", entity_id)
                continue
            for cls in classes:
                if cls not in target.css_classes:
                    target.css_classes.append(cls)

    def _style(self, m: re.Match[str], ctx: ParseContext) -> None:
        node = ctx.nodes.get(m.group("id"))
        if node is None:
            logger.debug("style for unknown node %r", m.group("id"))
            return
        decls = _parse_declarations(m.group("styles"))
        style = node.style or NodeStyle()
        if "fill" in decls:
            style.fill = decls["fill"]
        if "stroke" in decls:
            style.stroke = decls["stroke"]
        if "stroke-width" in decls:
            style.stroke_width = _to_int(decls["stroke-width"])
        if "color" in decls:
            style.color = decls["color"]
        node.style = None if style.is_empty() else style

    def _link_style(self, m: re.Match[str], ctx: ParseContext) -> None:
        decls = _parse_declarations(m.group("styles"))
        if m.group("indices") == "default":
            targets = list(ctx.edges)
        else:
            indices = [int(s) for s in m.group("indices").split(",")]
            targets = [ctx.edges[i] for i in indices if 0 <= i < len(ctx.edges)]
        for edge in targets:
            style = edge.style or EdgeStyle()
            if "stroke" in decls:
                style.stroke = decls["stroke"]
            if "stroke-width" in decls:
                style.stroke_width = _to_int(decls["stroke-width"])
            edge.style = None if style.is_empty() else style

    def _click(self, m: re.Match[str], ctx: ParseContext) -> None:
        node = ctx.nodes.get(m.group("id"))
        if node is None:
            logger.debug("click for unknown node %r", m.group("id"))
            return
        node.link = m.group("url")
        if m.group("tooltip") is not None:
            node.tooltip = decode_entities(m.group("tooltip"))
        if m.group("target"):
            node.link_target = m.group("target")

    def _edge_props(self, edge: Edge, body: str) -> None:
        props = parse_at_properties(body)
        if "animate" in props:
            edge.animate = props["animate"].lower() == "true"
        if "animation" in props:
            edge.animation = props["animation"] or None

    # ─── Node / edge statements ─────────────────────────────────────────

    def _node_edge_statement(self, line: str, ctx: ParseContext) -> None:
        parts = split_statement(line)
        groups: list[list[str]] = []
        ops: list[_EdgeToken] = []
        for part in parts:
            if isinstance(part, _EdgeToken):
                ops.append(part)
                continue
            ids = [node_id for token in split_ampersands(part) if (node_id := self._node_token(token, ctx))]
            if not ids:
                logger.debug("skipping statement with unreadable node %r: %r", part, line)
                return
            groups.append(ids)

        for (sources, targets), token in zip(itertools.pairwise(groups), ops):
            matched = match_edge_operator(token.op)
            if matched is None:
                logger.debug("skipping unknown edge operator %r", token.op)
                continue
            for source, target in itertools.product(sources, targets):
                self._add_edge(source, target, matched, token, ctx)

    def _node_token(self, token: str, ctx: ParseContext) -> str | None:
        classes: list[str] = []
        while True:
            m = _CLASS_SUFFIX_RE.search(token)
            if not m:
                break
            classes[:0] = m.group("classes").split(",")
            token = token[: m.start()]

        node_id = self._resolve_node(token.strip(), ctx)
        if node_id is not None:
            node = ctx.nodes[node_id]
            for cls in classes:
                if cls not in node.css_classes:
                    node.css_classes.append(cls)
        return node_id

    def _resolve_node(self, token: str, ctx: ParseContext) -> str | None:
        m = _AT_NODE_RE.match(token)
        if m:
            props = parse_at_properties(m.group("body"))
            node_id = m.group("id")
            shape = resolve_shape(props["shape"]) if props.get("shape") else None
            node = self._ensure_node(node_id, props.get("label"), shape, ctx)
            self._apply_at_props(node, props)
            return node_id

        shaped = match_shape(token)
        if shaped:
            node_id, raw, shape = shaped
            self._ensure_node(node_id, unquote_text(raw), shape, ctx)
            return node_id

        if is_bare_id(token):
            self._ensure_node(token, None, None, ctx)
            return token

        return None

    @staticmethod
    def _apply_at_props(node: Node, props: dict[str, str]) -> None:
        for key, attr in (("icon", "icon"), ("img", "img"), ("form", "form"), ("pos", "label_pos")):
            if props.get(key):
                setattr(node, attr, props[key])
        if props.get("tooltip"):
            node.tooltip = props["tooltip"]
        if props.get("w"):
            node.width = _to_int(props["w"])
        if props.get("h"):
            node.height = _to_int(props["h"])

    def _ensure_node(
        self,
        node_id: str,
        text: str | None,
        shape: NodeShape | str | None,
        ctx: ParseContext,
    ) -> Node:
        """First sighting creates the node; later ones refine text and shape."""
        node = ctx.nodes.get(node_id)
        if node is None:
            node = Node(id=node_id, text=text if text is not None else node_id, shape=shape or NodeShape.Rect)
            ctx.nodes[node_id] = node
        else:
            if text is not None and text != node_id:
                node.text = text
            if shape is not None and shape != NodeShape.Rect:
                node.shape = shape
        current = ctx.current_subgraph
        if current is not None and node.parent_id is None:
            node.parent_id = current
            ctx.subgraphs[current].add_node(node_id)
        return node

    def _add_edge(self, source: str, target: str, matched: EdgeMatch, token: _EdgeToken, ctx: ParseContext) -> None:
        if token.label is not None:
            text: str | None = unquote_text(token.label) or None
        elif matched.text is not None:
            text = unquote_text(matched.text) or None
        else:
            text = None

        if token.edge_id:
            base = token.edge_id
        else:
            base = generate_edge_id(
                source, target, matched.operator, text, matched.stroke, matched.arrow_start, matched.arrow_end
            )
        edge_id = dedupe_edge_id(base, ctx.edge_ids)
        if edge_id != base:
            logger.debug("edge id %s already taken, renamed to %s", base, edge_id)
        ctx.edge_ids.add(edge_id)
        ctx.edges.append(
            Edge(
                id=edge_id,
                source=source,
                target=target,
                text=text,
                stroke=matched.stroke,
                arrow_start=matched.arrow_start,
                arrow_end=matched.arrow_end,
                length=matched.length,
                user_defined_id=bool(token.edge_id),
            )
        )


def parse_flowchart(src: str) -> FlowchartModel:
    return FlowchartParser().parse(src)


__all__ = ["FlowchartParser", "ParseContext", "parse_flowchart", "split_ampersands", "split_statement"]
