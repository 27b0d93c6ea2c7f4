"""Base parser protocol."""

from __future__ import annotations

from typing import Protocol

from mermaid_edit.ir.model import FlowchartModel


class Parser(Protocol):
    """Protocol that all diagram parsers must implement."""

    def parse(self, src: str) -> FlowchartModel:
        """Parse source text into a FlowchartModel. Must not raise."""
        ...
