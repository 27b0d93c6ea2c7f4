"""Serializers — FlowchartModel back to diagram text."""

from __future__ import annotations

from mermaid_edit.config import SerializerConfig
from mermaid_edit.ir.model import FlowchartModel
from mermaid_edit.serializers.base import Serializer
from mermaid_edit.serializers.mermaid import MermaidSerializer


def serialize(model: FlowchartModel, config: SerializerConfig | None = None) -> str:
    """Serialize a model to canonical Mermaid flowchart text."""
    return MermaidSerializer(config).serialize(model)


__all__ = ["MermaidSerializer", "Serializer", "serialize"]
