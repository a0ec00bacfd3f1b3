"""
Events emitted by the expression manager.

One transaction (a top-level set_state / set_value plus every assignment it
cascades into) produces at most one VARIABLE_CHANGE event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class EventType(str, Enum):
    """Kinds of manager events."""
    EVENT_VARIABLE_CHANGE = "EVENT_VARIABLE_CHANGE"


EVENT = EventType


@dataclass
class VariableChange:
    """Payload of an EVENT_VARIABLE_CHANGE event."""
    target_control_ids: List[Any] = field(default_factory=list)
    new_values: Dict[str, Any] = field(default_factory=dict)
    old_values: Dict[str, Any] = field(default_factory=dict)
    is_delayed: bool = False


@dataclass
class ManagerEvent:
    type: EventType
    data: VariableChange


class EventAccumulator:
    """Change-set built up during one transaction."""

    def __init__(self):
        self._targets = {}      # control id → None, keeps first-seen order
        self._new_values = {}
        self._old_values = {}

    def record(self, prop, old_value, new_value):
        """Note one key change, in the order the changes happen."""
        self._new_values[prop] = new_value
        # a key that changes twice keeps the value it had before the transaction
        self._old_values.setdefault(prop, old_value)

    def add_targets(self, target_control_ids):
        for control_id in target_control_ids:
            self._targets.setdefault(control_id, None)

    @property
    def changed(self) -> bool:
        return bool(self._new_values)

    def to_event(self, is_delayed=False) -> ManagerEvent:
        return ManagerEvent(
            type=EventType.EVENT_VARIABLE_CHANGE,
            data=VariableChange(
                target_control_ids=list(self._targets),
                new_values=dict(self._new_values),
                old_values=dict(self._old_values),
                is_delayed=is_delayed,
            ),
        )
