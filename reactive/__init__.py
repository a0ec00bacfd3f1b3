"""
Reactive layer: controls and assignments bound to a shared state store.

ExpressionManager keeps the dependency graph between state keys, controls
and derived assignments and batches every cascade into one event.
SignalBridge exposes the same state as reaktiv Signals/Computed/Effects.
"""

from reactive.events import EVENT, EventType, ManagerEvent, VariableChange
from reactive.config import ManagerConfig
from reactive.scheduler import Scheduler, AsyncioScheduler, ManualScheduler
from reactive.manager import (
    ExpressionManager, Control, RuntimeAssignment, ControlNotWritable, create_expression_manager,
)
from reactive.signals import SignalBridge
from expressions.identifiers import get_variables_from_expression
