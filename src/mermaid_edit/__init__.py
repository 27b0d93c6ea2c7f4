"""mermaid-edit: Mermaid flowchart text to an editable graph model and back."""

from mermaid_edit.config import SerializerConfig, SyncConfig
from mermaid_edit.errors import (
    DuplicateIdError,
    MermaidEditError,
    MissingNodeError,
    SubGraphCycleError,
    UnsupportedDiagramError,
)
from mermaid_edit.ir import Edge, FlowchartModel, GraphIR, ModelChangeEvent, Node, SubGraph
from mermaid_edit.parsers import DiagramTypeInfo, detect_type, parse
from mermaid_edit.serializers import serialize
from mermaid_edit.sync import SyncEngine
from mermaid_edit.types import ArrowType, Direction, ModelEventType, NodeShape, Stroke


def roundtrip(src: str, config: SerializerConfig | None = None) -> str:
    """Parse Mermaid flowchart text and serialize it back in canonical form.

    Args:
        src: Mermaid DSL source string.
        config: Output formatting; defaults to SerializerConfig().

    Returns:
        The canonical flowchart text. Another kind of Mermaid diagram gives
        an empty flowchart.
    """
    return serialize(parse(src), config)


__all__ = [
    "ArrowType",
    "DiagramTypeInfo",
    "Direction",
    "DuplicateIdError",
    "Edge",
    "FlowchartModel",
    "GraphIR",
    "MermaidEditError",
    "MissingNodeError",
    "ModelChangeEvent",
    "ModelEventType",
    "Node",
    "NodeShape",
    "SerializerConfig",
    "Stroke",
    "SubGraph",
    "SubGraphCycleError",
    "SyncConfig",
    "SyncEngine",
    "UnsupportedDiagramError",
    "detect_type",
    "parse",
    "roundtrip",
    "serialize",
]
