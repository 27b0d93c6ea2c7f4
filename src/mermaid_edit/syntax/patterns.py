"""Shape and edge pattern tables for Mermaid flowchart syntax.

Both tables are first-match-wins. List order is part of their meaning:
a more specific entry must come before any entry that would also match
its input (``(((`` before ``((`` before ``(``; symbol-only operators before
the text-bearing forms whose lazy ``.+?`` would otherwise read extra dashes
as label text). Reordering entries changes what the parser produces.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mermaid_edit.types import ArrowType, NodeShape, Stroke

# ─── Shapes ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ShapeDelimiter:
    start: str
    end: str
    shape: NodeShape


SHAPE_PATTERNS: list[ShapeDelimiter] = [
    ShapeDelimiter("(((", ")))", NodeShape.DoubleCircle),
    ShapeDelimiter("((", "))", NodeShape.Circle),
    ShapeDelimiter("([", "])", NodeShape.Stadium),
    ShapeDelimiter("[(", ")]", NodeShape.Cylinder),
    ShapeDelimiter("[[", "]]", NodeShape.Subroutine),
    ShapeDelimiter("{{", "}}", NodeShape.Hexagon),
    ShapeDelimiter("[/", "/]", NodeShape.Trapezoid),
    ShapeDelimiter("[\\", "\\]", NodeShape.InvTrapezoid),
    ShapeDelimiter("[/", "\\]", NodeShape.LeanRight),
    ShapeDelimiter("[\\", "/]", NodeShape.LeanLeft),
    ShapeDelimiter(">", "]", NodeShape.Odd),
    ShapeDelimiter("{", "}", NodeShape.Diamond),
    ShapeDelimiter("(", ")", NodeShape.Rounded),
    ShapeDelimiter("[", "]", NodeShape.Rect),
]

LEGACY_SHAPE_SYNTAX: dict[NodeShape, tuple[str, str]] = {p.shape: (p.start, p.end) for p in SHAPE_PATTERNS}

NODE_ID = r"[^\s\[\](){}<>@\"'`|&]+?"

_SHAPE_RES: list[tuple[re.Pattern[str], NodeShape]] = [
    (re.compile(rf"^(?P<id>{NODE_ID}){re.escape(p.start)}(?P<text>.*){re.escape(p.end)}$", re.DOTALL), p.shape)
    for p in SHAPE_PATTERNS
]

_BARE_ID_RE = re.compile(r"^[^\s\[\](){}<>@\"'`|]+$")


def match_shape(token: str) -> tuple[str, str, NodeShape] | None:
    """Match ``id<open>text<close>``; returns (id, raw text, shape) or None."""
    for pattern, shape in _SHAPE_RES:
        m = pattern.match(token)
        if m:
            return m.group("id"), m.group("text"), shape
    return None


def is_bare_id(token: str) -> bool:
    return bool(_BARE_ID_RE.match(token))


# ─── Edges ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EdgeRule:
    pattern: re.Pattern[str]
    stroke: Stroke
    arrow_start: ArrowType
    arrow_end: ArrowType
    has_text: bool = False


@dataclass(frozen=True)
class EdgeMatch:
    operator: str  # symbol-only operator, label removed
    stroke: Stroke
    arrow_start: ArrowType
    arrow_end: ArrowType
    text: str | None
    length: int


_START_MARKERS: dict[ArrowType, str] = {
    ArrowType.NONE: "",
    ArrowType.Arrow: "<",
    ArrowType.Circle: "o",
    ArrowType.Cross: "x",
}
_END_MARKERS: dict[ArrowType, str] = {
    ArrowType.NONE: "",
    ArrowType.Arrow: ">",
    ArrowType.Circle: "o",
    ArrowType.Cross: "x",
}

_BODY: dict[Stroke, str] = {
    Stroke.Normal: r"-{2,}",
    Stroke.Thick: r"={2,}",
    Stroke.Dotted: r"-\.+-",
}


def _marker_rules(stroke: Stroke) -> list[EdgeRule]:
    rules: list[EdgeRule] = []
    for start in (ArrowType.Arrow, ArrowType.Circle, ArrowType.Cross, ArrowType.NONE):
        for end in (ArrowType.Arrow, ArrowType.Circle, ArrowType.Cross, ArrowType.NONE):
            regex = re.escape(_START_MARKERS[start]) + _BODY[stroke] + re.escape(_END_MARKERS[end])
            rules.append(EdgeRule(re.compile(regex), stroke, start, end))
    return rules


def _text_rule(regex: str, stroke: Stroke, start: ArrowType, end: ArrowType) -> EdgeRule:
    return EdgeRule(re.compile(regex, re.DOTALL), stroke, start, end, has_text=True)


EDGE_RULES: list[EdgeRule] = [
    EdgeRule(re.compile(r"~{3,}"), Stroke.Invisible, ArrowType.NONE, ArrowType.NONE),
    *_marker_rules(Stroke.Thick),
    *_marker_rules(Stroke.Dotted),
    *_marker_rules(Stroke.Normal),
    # Space-delimited label forms: `== text ==>`, `-. text .->`, `-- text -->`.
    _text_rule(r"<==\s*(?P<text>.+?)\s*={2,}>", Stroke.Thick, ArrowType.Arrow, ArrowType.Arrow),
    _text_rule(r"==\s*(?P<text>.+?)\s*={2,}>", Stroke.Thick, ArrowType.NONE, ArrowType.Arrow),
    _text_rule(r"==\s*(?P<text>.+?)\s*={2,}o", Stroke.Thick, ArrowType.NONE, ArrowType.Circle),
    _text_rule(r"==\s*(?P<text>.+?)\s*={2,}x", Stroke.Thick, ArrowType.NONE, ArrowType.Cross),
    _text_rule(r"==\s*(?P<text>.+?)\s*={3,}", Stroke.Thick, ArrowType.NONE, ArrowType.NONE),
    _text_rule(r"<-\.\s*(?P<text>.+?)\s*\.+->", Stroke.Dotted, ArrowType.Arrow, ArrowType.Arrow),
    _text_rule(r"-\.\s*(?P<text>.+?)\s*\.+->", Stroke.Dotted, ArrowType.NONE, ArrowType.Arrow),
    _text_rule(r"-\.\s*(?P<text>.+?)\s*\.+-o", Stroke.Dotted, ArrowType.NONE, ArrowType.Circle),
    _text_rule(r"-\.\s*(?P<text>.+?)\s*\.+-x", Stroke.Dotted, ArrowType.NONE, ArrowType.Cross),
    _text_rule(r"-\.\s*(?P<text>.+?)\s*\.+-", Stroke.Dotted, ArrowType.NONE, ArrowType.NONE),
    _text_rule(r"<--\s*(?P<text>.+?)\s*-{2,}>", Stroke.Normal, ArrowType.Arrow, ArrowType.Arrow),
    _text_rule(r"--\s*(?P<text>.+?)\s*-{2,}>", Stroke.Normal, ArrowType.NONE, ArrowType.Arrow),
    _text_rule(r"--\s*(?P<text>.+?)\s*-{2,}o", Stroke.Normal, ArrowType.NONE, ArrowType.Circle),
    _text_rule(r"--\s*(?P<text>.+?)\s*-{2,}x", Stroke.Normal, ArrowType.NONE, ArrowType.Cross),
    _text_rule(r"--\s*(?P<text>.+?)\s*-{3,}", Stroke.Normal, ArrowType.NONE, ArrowType.NONE),
]

# Scanner patterns used to find an operator inside a statement line. The
# text-bearing forms are tried before EDGE_TOKEN_RE at every position,
# otherwise `-- text -->` would be read as `--` followed by a node `text`.
# A quoted span inside the label is consumed whole, so the `-->` inside
# `-- "a --> b" -->` does not end the label. A lone unbalanced quote is text.
_LABEL_CHAR = r'(?:"[^"]*"|"(?![^"]*")|[^"])'
_LABEL = rf'(?:"[^"]*"|"(?![^"]*")|[^\s"]){_LABEL_CHAR}*?'

TEXT_EDGE_TOKEN_RES: list[re.Pattern[str]] = [
    re.compile(rf"<?==\s+{_LABEL}\s+(?:={{2,}}[>ox]|={{3,}})"),
    re.compile(rf"<?-\.\s+{_LABEL}\s+\.+-[>ox]?"),
    re.compile(rf"<?--\s+{_LABEL}\s+(?:-{{2,}}[>ox]|-{{3,}})"),
]

# Longest alternatives first: `<-->` must not be read as `<--` + `>`.
# o/x markers only count when they stand apart from the neighbouring node id.
EDGE_TOKEN_RE = re.compile(
    r"(?:(?<![^\s])(?P<edge_id>[\w-]+)@)?"
    r"(?P<op>"
    r"~{3,}"
    r"|(?:<|(?<![^\s@])[ox])?={2,}(?:>|[ox](?=[\s|]|$))?"
    r"|(?:<|(?<![^\s@])[ox])?-\.+-(?:>|[ox](?=[\s|]|$))?"
    r"|(?:<|(?<![^\s@])[ox])?-{2,}(?:>|[ox](?=[\s|]|$))?"
    r")"
    r"(?:[ \t]*\|(?P<label>[^|]*)\|)?"
)


def edge_length(operator: str, stroke: Stroke, arrow_end: ArrowType) -> int:
    """Visual length encoded by the operator's closing run of characters.

    ``-->``/``---`` = 1, ``--->``/``----`` = 2; ``-.->`` = 1, ``-..->`` = 2.
    """
    if stroke == Stroke.Dotted:
        runs = re.findall(r"\.+", operator)
        return max(1, len(runs[-1])) if runs else 1
    char = {Stroke.Normal: "-", Stroke.Thick: "=", Stroke.Invisible: "~"}[stroke]
    runs = re.findall(re.escape(char) + "+", operator)
    if not runs:
        return 1
    run = len(runs[-1])
    return max(1, run - 1 if arrow_end != ArrowType.NONE else run - 2)


def match_edge_operator(token: str) -> EdgeMatch | None:
    """Resolve a raw operator token against EDGE_RULES."""
    token = token.strip()
    for rule in EDGE_RULES:
        m = rule.pattern.fullmatch(token)
        if not m:
            continue
        text = m.group("text").strip() if rule.has_text else None
        length = edge_length(token, rule.stroke, rule.arrow_end)
        symbols = edge_operator(rule.stroke, rule.arrow_start, rule.arrow_end, length) if rule.has_text else token
        return EdgeMatch(
            operator=symbols,
            stroke=rule.stroke,
            arrow_start=rule.arrow_start,
            arrow_end=rule.arrow_end,
            text=text,
            length=length,
        )
    return None


def edge_operator(stroke: Stroke, arrow_start: ArrowType, arrow_end: ArrowType, length: int = 1) -> str:
    """Inverse of the rule table: build the operator for an edge."""
    length = max(1, length)
    start = _START_MARKERS[arrow_start]
    end = _END_MARKERS[arrow_end]
    if stroke == Stroke.Invisible:
        return "~" * (length + 2)
    if stroke == Stroke.Dotted:
        return f"{start}-{'.' * length}-{end}"
    char = "=" if stroke == Stroke.Thick else "-"
    run = length + 1 if arrow_end != ArrowType.NONE else length + 2
    return f"{start}{char * run}{end}"
