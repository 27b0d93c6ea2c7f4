"""Intermediate representation: entities, the editable model and GraphIR."""

from mermaid_edit.ir.entities import Edge, EdgeStyle, Node, NodeStyle, Position, Size, SubGraph
from mermaid_edit.ir.events import EventEmitter, ModelChangeEvent
from mermaid_edit.ir.graph import GraphIR, NodeData
from mermaid_edit.ir.model import FlowchartModel

__all__ = [
    "Edge",
    "EdgeStyle",
    "EventEmitter",
    "FlowchartModel",
    "GraphIR",
    "ModelChangeEvent",
    "Node",
    "NodeData",
    "NodeStyle",
    "Position",
    "Size",
    "SubGraph",
]
