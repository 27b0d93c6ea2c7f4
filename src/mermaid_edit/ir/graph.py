"""Graph IR — a read-only networkx view of a FlowchartModel.

The model is the source of truth for editing; this projection exists for
topology queries (cycles, ordering, degrees, parallel edges). It is rebuilt
from the model on demand and never written back.
"""

from __future__ import annotations

from dataclasses import dataclass

import networkx as nx

from mermaid_edit.ir.entities import Edge, Node
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.types import Direction, NodeShape


@dataclass
class NodeData:
    id: str
    label: str
    shape: NodeShape | str
    subgraph: str | None = None


class GraphIR:
    """Wraps a networkx MultiDiGraph keyed by node id.

    Each edge is stored under its model edge id as the multigraph key, so
    parallel edges between the same two nodes stay distinct.
    """

    def __init__(
        self,
        digraph: nx.MultiDiGraph,
        direction: Direction,
        subgraph_members: list[tuple[str, list[str]]],
        subgraph_titles: dict[str, str],
    ) -> None:
        self.digraph = digraph
        self.direction = direction
        self.subgraph_members = subgraph_members
        self.subgraph_titles = subgraph_titles

    @classmethod
    def from_model(cls, model: FlowchartModel) -> GraphIR:
        """Build a GraphIR from the current state of a model."""
        digraph: nx.MultiDiGraph = nx.MultiDiGraph()

        for node in model.nodes:
            _add_node(digraph, node)

        for edge in model.edges:
            _add_edge(digraph, edge)

        subgraph_members: list[tuple[str, list[str]]] = []
        subgraph_titles: dict[str, str] = {}
        for sg in model.subgraphs:
            subgraph_members.append((sg.id, list(sg.node_ids)))
            if sg.title != sg.id:
                subgraph_titles[sg.id] = sg.title

        return cls(
            digraph=digraph,
            direction=model.direction,
            subgraph_members=subgraph_members,
            subgraph_titles=subgraph_titles,
        )

    def is_dag(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def topological_order(self) -> list[str] | None:
        try:
            return list(nx.topological_sort(self.digraph))
        except nx.NetworkXUnfeasible:
            return None

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def in_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.in_degree(node_id)

    def out_degree(self, node_id: str) -> int:
        if node_id not in self.digraph:
            return 0
        return self.digraph.out_degree(node_id)

    def adjacency_list(self) -> list[tuple[str, list[str]]]:
        result: list[tuple[str, list[str]]] = []
        for node_id in self.digraph.nodes:
            neighbors = sorted(set(self.digraph.successors(node_id)))
            result.append((node_id, neighbors))
        result.sort(key=lambda x: x[0])
        return result

    def edges_between(self, source: str, target: str) -> list[str]:
        """Ids of the edges running from ``source`` to ``target``, in model order."""
        if not self.digraph.has_edge(source, target):
            return []
        return list(self.digraph[source][target])


def _add_node(digraph: nx.MultiDiGraph, node: Node) -> None:
    data = NodeData(id=node.id, label=node.text, shape=node.shape, subgraph=node.parent_id)
    digraph.add_node(node.id, data=data)


def _add_edge(digraph: nx.MultiDiGraph, edge: Edge) -> None:
    digraph.add_edge(edge.source, edge.target, key=edge.id, data=edge)
