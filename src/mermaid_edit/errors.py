"""Exception types raised by the graph model and the CLI entry points.

The parser never raises; these only surface from explicit model mutations
and from the diagram-type registry.
"""

from __future__ import annotations


class MermaidEditError(ValueError):
    """Base class for all mermaid-edit errors."""


class DuplicateIdError(MermaidEditError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f'{kind} with id "{entity_id}" already exists')
        self.kind = kind
        self.entity_id = entity_id


class MissingNodeError(MermaidEditError):
    def __init__(self, role: str, node_id: str) -> None:
        super().__init__(f'{role} node "{node_id}" does not exist')
        self.role = role
        self.node_id = node_id


class SubGraphCycleError(MermaidEditError):
    def __init__(self, subgraph_id: str, parent_id: str) -> None:
        super().__init__(f'subgraph "{subgraph_id}" cannot be nested under "{parent_id}": parents would cycle')
        self.subgraph_id = subgraph_id
        self.parent_id = parent_id


class UnsupportedDiagramError(MermaidEditError):
    def __init__(self, diagram_type: str) -> None:
        super().__init__(f"Unsupported diagram type: {diagram_type}")
        self.diagram_type = diagram_type
