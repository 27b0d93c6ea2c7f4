"""Parser registry — detect the diagram type and dispatch to the right parser."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from mermaid_edit.errors import UnsupportedDiagramError
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.parsers.base import Parser
from mermaid_edit.parsers.flowchart import FlowchartParser
from mermaid_edit.parsers.preprocess import COMMENT_MARKER, strip_front_matter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagramTypeInfo:
    type: str
    display_name: str
    is_editable: bool


# First line keyword -> (type, display name). Only flowcharts are editable.
_DIAGRAM_KEYWORDS: list[tuple[re.Pattern[str], str, str]] = [
    (re.compile(r"^(flowchart|graph)(-elk)?\b", re.IGNORECASE), "flowchart", "Flowchart"),
    (re.compile(r"^sequenceDiagram\b"), "sequenceDiagram", "Sequence Diagram"),
    (re.compile(r"^classDiagram(-v2)?\b"), "classDiagram", "Class Diagram"),
    (re.compile(r"^stateDiagram(-v2)?\b"), "stateDiagram", "State Diagram"),
    (re.compile(r"^erDiagram\b"), "erDiagram", "ER Diagram"),
    (re.compile(r"^gantt\b"), "gantt", "Gantt Chart"),
    (re.compile(r"^pie\b"), "pie", "Pie Chart"),
    (re.compile(r"^gitGraph\b"), "gitGraph", "Git Graph"),
    (re.compile(r"^journey\b"), "journey", "User Journey"),
    (re.compile(r"^mindmap\b"), "mindmap", "Mindmap"),
    (re.compile(r"^timeline\b"), "timeline", "Timeline"),
    (re.compile(r"^quadrantChart\b"), "quadrantChart", "Quadrant Chart"),
    (re.compile(r"^xychart(-beta)?\b"), "xychart", "XY Chart"),
    (re.compile(r"^requirementDiagram\b"), "requirementDiagram", "Requirement Diagram"),
    (re.compile(r"^sankey(-beta)?\b"), "sankey", "Sankey Diagram"),
    (re.compile(r"^C4(Context|Container|Component|Dynamic|Deployment)\b"), "c4", "C4 Diagram"),
    (re.compile(r"^block(-beta)?\b"), "block", "Block Diagram"),
    (re.compile(r"^architecture(-beta)?\b"), "architecture", "Architecture Diagram"),
    (re.compile(r"^packet(-beta)?\b"), "packet", "Packet Diagram"),
    (re.compile(r"^kanban\b"), "kanban", "Kanban"),
    (re.compile(r"^zenuml\b"), "zenuml", "ZenUML"),
    (re.compile(r"^radar(-beta)?\b"), "radar", "Radar Chart"),
    (re.compile(r"^treemap(-beta)?\b"), "treemap", "Treemap"),
]

UNKNOWN = DiagramTypeInfo("unknown", "Unknown", False)


def detect_type(src: str) -> DiagramTypeInfo:
    """Detect the diagram type from the first meaningful line of ``src``."""
    for line in strip_front_matter(src).splitlines():
        line = line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue
        for pattern, diagram_type, display_name in _DIAGRAM_KEYWORDS:
            if pattern.match(line):
                return DiagramTypeInfo(diagram_type, display_name, diagram_type == "flowchart")
        break
    return UNKNOWN


_PARSERS: dict[str, type[Parser]] = {
    "flowchart": FlowchartParser,
    # Headerless text is read as a flowchart body, best effort.
    "unknown": FlowchartParser,
}


def parse(src: str, strict: bool = False) -> FlowchartModel:
    """Detect the diagram type and parse to a FlowchartModel.

    Parsing is total: another kind of Mermaid diagram gives an empty
    flowchart unless ``strict`` is set.

    Raises:
        UnsupportedDiagramError: If ``strict`` and ``src`` is another kind of
            Mermaid diagram.
    """
    info = detect_type(src)
    parser_cls = _PARSERS.get(info.type)
    if parser_cls is None:
        if strict:
            raise UnsupportedDiagramError(info.type)
        logger.debug("%s is not editable, returning an empty flowchart", info.display_name)
        return FlowchartModel()
    return parser_cls().parse(src)


__all__ = ["DiagramTypeInfo", "FlowchartParser", "Parser", "detect_type", "parse"]
