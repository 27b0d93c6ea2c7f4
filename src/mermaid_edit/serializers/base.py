"""Base serializer protocol."""

from __future__ import annotations

from typing import Protocol

from mermaid_edit.ir.model import FlowchartModel


class Serializer(Protocol):
    """Protocol that all serializers must implement."""

    def serialize(self, model: FlowchartModel) -> str:
        """Write a model back out as diagram text."""
        ...
