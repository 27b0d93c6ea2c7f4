"""Change notifications emitted by the flowchart model."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mermaid_edit.types import ModelEventType


@dataclass
class ModelChangeEvent:
    """One model change.

    ``target`` is the affected entity (a clone), ``previous_value`` and
    ``new_value`` carry before/after snapshots for updates. For a batch
    event ``new_value`` is the ordered list of buffered events.
    """

    type: ModelEventType
    target: Any = None
    previous_value: Any = None
    new_value: Any = None


Listener = Callable[[ModelChangeEvent], None]


class EventEmitter:
    """Synchronous publish/subscribe, delivered in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, event: ModelChangeEvent) -> None:
        # Iterate over a copy so a listener may unsubscribe itself.
        for listener in list(self._listeners):
            listener(event)
