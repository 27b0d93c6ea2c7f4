"""Centralized configuration for mermaid-edit."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SerializerConfig:
    """Configuration for flowchart text output."""

    indent: str = "    "
    include_styles: bool = True
    include_class_defs: bool = True


@dataclass
class SyncConfig:
    """Configuration for the sync engine."""

    debounce_delay: float = 0.3  # seconds
    history_limit: int = 100
