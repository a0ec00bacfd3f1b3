"""
ExpressionManager — binds controls and derived assignments to a StateStore.

    manager = create_expression_manager({})
    door = manager.add_control(0, {"read": "button1 && button2"})
    button1 = manager.add_control(1, {"storage": "button1"})
    button2 = manager.add_control(2, {"storage": "button2"})
    manager.add_runtime_assignment("button2", "!button1")
    manager.on_event(lambda event: print(event.data.target_control_ids))

    button1.set_value(False)        # prints [0, 2, 1]; button2 is now True

Every top-level write (set_state, Control.set_value, a deferred assignment
firing) is a transaction: the store change, plus every assignment it
cascades into, is gathered into one VARIABLE_CHANGE event that is
dispatched once the cascade has finished.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from expressions.errors import CascadeDepthExceeded
from expressions.evaluator import evaluate
from expressions.identifiers import free_variables
from expressions.nodes import Node
from expressions.parser import parse
from expressions.values import is_truthy
from reactive.config import ManagerConfig
from reactive.context import default_context, make_rng
from reactive.events import EventAccumulator
from reactive.scheduler import AsyncioScheduler
from store.state import StateStore, Subscription

logger = logging.getLogger(__name__)

STORAGE_SLOT = "storage"


class ControlNotWritable(TypeError):
    """Raised by set_value() on a control without a storage slot."""

    def __init__(self, control_id):
        self.control_id = control_id
        super().__init__(f"Control {control_id!r} has no storage slot and cannot be written")


@dataclass
class RuntimeAssignment:
    """
    "When a listen variable changes, write ``expression`` to ``storage``."

    - listen: comma-separated variable names; defaults to the free
      variables of ``expression``.
    - condition: expression that must be truthy for the write to happen.
    - timeout: delay in milliseconds. The assignment is then evaluated
      later, in its own transaction, instead of inside the triggering one.

    Both expressions are parsed on construction, so a malformed one raises
    ExpressionSyntaxError right away.
    """
    storage: str
    expression: str
    listen: Optional[str] = None
    condition: Optional[str] = None
    timeout: Optional[float] = None
    expression_node: Node = field(default=None, init=False, repr=False, compare=False)
    condition_node: Optional[Node] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        self.expression_node = parse(self.expression)
        self.condition_node = parse(self.condition) if self.condition else None

    def listen_variables(self) -> list:
        if self.listen:
            names = [name.strip() for name in self.listen.split(",")]
            return list(dict.fromkeys(name for name in names if name))
        return free_variables(self.expression_node)


@dataclass(eq=False)
class DeferredAssignment:
    """An assignment handed to the scheduler and not yet run."""
    assignment: RuntimeAssignment
    handle: Any = None


class Control:
    """
    A UI-bound unit with named runtime slots.

    The ``storage`` slot holds a state key the control reads and writes;
    every other slot holds an expression evaluated on demand.
    """

    def __init__(self, manager, control_id, runtime):
        self.id = control_id
        self.runtime = dict(runtime)
        self._manager = manager
        self._nodes = {
            slot: parse(expression)
            for slot, expression in self.runtime.items()
            if slot != STORAGE_SLOT and expression
        }

    @property
    def storage(self) -> Optional[str]:
        return self.runtime.get(STORAGE_SLOT) or None

    @property
    def writable(self) -> bool:
        return self.storage is not None

    @property
    def variables(self) -> list:
        """State keys this control reads, in slot order."""
        names = []
        for slot, value in self.runtime.items():
            if slot == STORAGE_SLOT:
                if value:
                    names.append(value)
            elif slot in self._nodes:
                names.extend(free_variables(self._nodes[slot]))
        return list(dict.fromkeys(names))

    def set_value(self, value) -> None:
        """Write ``value`` to the storage key, as one transaction."""
        if not self.writable:
            raise ControlNotWritable(self.id)
        self._manager.set_state({self.storage: value})

    def evaluate(self, slot: Optional[str] = None):
        """Current storage value (no slot) or the value of a slot's expression."""
        if not slot or slot == STORAGE_SLOT:
            return self._manager.get_state().get(self.storage) if self.storage else None
        if slot not in self._nodes:
            raise KeyError(f"No expression slot '{slot}' on control {self.id!r}")
        return self._manager._evaluate(self._nodes[slot])

    def __repr__(self):
        return f"Control(id={self.id!r}, runtime={self.runtime!r})"


class ExpressionManager:
    """
    Owns a StateStore, the controls reading it and the assignments deriving
    values in it.

    Dependency indices:
        _read_links:  variable → [Control]              (who must refresh)
        _assignments: listen variable → {storage: RuntimeAssignment}
    """

    def __init__(self, initial_state=None, initial_assignments=None, context=None,
                 scheduler=None, config=None):
        self.config = config or ManagerConfig()
        initial_state = dict(initial_state or {})

        self._context = default_context(make_rng(initial_state.get(self.config.seed_key)))
        self._context.update(context or {})
        self._scheduler = scheduler if scheduler is not None else AsyncioScheduler()

        self._store = StateStore(initial_state)
        self._controls = []
        self._read_links = {}
        self._assignments = {}
        self._event_listeners = {}      # subscription_id → callback
        self._subscription_ids = itertools.count(1)
        self._pending = []
        self._accumulator = EventAccumulator()
        self._in_transaction = False
        self._depth = 0
        self._store_subscription = self._store.on_change(self._on_variable_change)

        if initial_assignments:
            # evaluated against the context alone; initial_state is not visible
            initial = {
                name: evaluate(parse(expression), dict(self._context))
                for name, expression in initial_assignments.items()
            }
            self._store.set_state(initial)

    # ── Registration ─────────────────────────────────────────────────

    def add_control(self, control_id, runtime) -> Control:
        """Register a control and index it under every variable it reads."""
        control = Control(self, control_id, runtime)
        for name in control.variables:
            links = self._read_links.setdefault(name, [])
            if not any(c is control for c in links):
                links.append(control)
        self._controls.append(control)
        logger.debug("Registered control %r reading %s", control_id, control.variables)
        return control

    def add_runtime_assignment(self, storage, expression=None, listen=None, condition=None,
                               timeout=None) -> RuntimeAssignment:
        """
        Register an assignment; re-registering a (listen var, storage) pair replaces it.

        ``storage`` may also be a ready-made RuntimeAssignment, in which case
        the other arguments are ignored.
        """
        if isinstance(storage, RuntimeAssignment):
            assignment = storage
        elif expression is None:
            raise TypeError(f"Assignment to '{storage}' needs an expression")
        else:
            assignment = RuntimeAssignment(storage, expression, listen, condition, timeout)
        names = assignment.listen_variables()
        for name in names:
            self._assignments.setdefault(name, {})[assignment.storage] = assignment
        logger.debug("Registered assignment %s = %s listening to %s",
                     assignment.storage, assignment.expression, names)
        return assignment

    # ── State ────────────────────────────────────────────────────────

    def set_state(self, patch) -> None:
        """Apply ``patch`` as one transaction."""
        self._transaction(lambda: self._store.set_state(patch))

    def get_state(self) -> dict:
        return self._store.get_state()

    def evaluate_expression(self, expression: str):
        """Evaluate an ad-hoc expression against the current state."""
        return self._evaluate(parse(expression))

    @property
    def controls(self) -> tuple:
        return tuple(self._controls)

    @property
    def pending_assignments(self) -> tuple:
        """Deferred assignments scheduled but not yet run."""
        return tuple(task.assignment for task in self._pending)

    # ── Events ───────────────────────────────────────────────────────

    def on_event(self, callback) -> Subscription:
        """Call ``callback(ManagerEvent)`` after every transaction that changed state."""
        subscription = Subscription(next(self._subscription_ids))
        self._event_listeners[subscription.id] = callback
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        return self._event_listeners.pop(subscription.id, None) is not None

    def dispose(self) -> None:
        """Cancel pending deferred assignments and drop every registration."""
        for task in self._pending:
            self._scheduler.cancel(task.handle)
        self._pending.clear()
        self._event_listeners.clear()
        self._read_links.clear()
        self._assignments.clear()
        self._controls.clear()
        self._store.dispose()

    # ── Internal ─────────────────────────────────────────────────────

    def _evaluate(self, node):
        context = dict(self._context)
        context.update(self._store.get_state())
        return evaluate(node, context)

    def _transaction(self, mutate, is_delayed=False):
        if self._in_transaction:
            # a write issued from inside a cascade joins the running transaction
            mutate()
            return

        self._accumulator = EventAccumulator()
        self._in_transaction = True
        try:
            mutate()
        finally:
            self._in_transaction = False

        if not self._accumulator.changed:
            return

        event = self._accumulator.to_event(is_delayed=is_delayed)
        logger.debug(
            "Dispatching %s changed=%s targets=%s delayed=%s",
            event.type.value, list(event.data.new_values), event.data.target_control_ids, is_delayed,
        )
        for cb in list(self._event_listeners.values()):
            cb(event)

    def _on_variable_change(self, change):
        self._depth += 1
        try:
            limit = self.config.max_cascade_depth
            if limit is not None and self._depth > limit:
                logger.warning("Assignment cascade deeper than %d at '%s'", limit, change.prop)
                raise CascadeDepthExceeded(change.prop, limit)

            self._accumulator.record(change.prop, change.old_value, change.new_value)

            assignments = list(self._assignments.get(change.prop, {}).values())
            deferred = []
            for assignment in assignments:
                if assignment.timeout:
                    deferred.append(assignment)
                else:
                    self._apply_assignment(assignment)

            # targets are merged after the cascade, innermost keys first
            self._accumulator.add_targets(self._controls_affected_by(change.prop, assignments))

            for assignment in deferred:
                self._defer(assignment)
        finally:
            self._depth -= 1

    def _controls_affected_by(self, prop, assignments) -> list:
        ids = [c.id for c in self._read_links.get(prop, ())]
        for assignment in assignments:
            ids.extend(c.id for c in self._read_links.get(assignment.storage, ()))
        return ids

    def _apply_assignment(self, assignment):
        condition = assignment.condition_node
        if condition is not None and not is_truthy(self._evaluate(condition)):
            return
        self._store.set_state({assignment.storage: self._evaluate(assignment.expression_node)})

    def _defer(self, assignment):
        task = DeferredAssignment(assignment)

        def fire():
            if task in self._pending:
                self._pending.remove(task)
            logger.debug("Running deferred assignment to '%s'", assignment.storage)
            self._transaction(lambda: self._apply_assignment(assignment), is_delayed=True)

        task.handle = self._scheduler.call_later(assignment.timeout, fire)
        self._pending.append(task)
        logger.debug("Deferred assignment to '%s' by %sms", assignment.storage, assignment.timeout)


def create_expression_manager(initial_state=None, initial_assignments=None, context=None,
                              scheduler=None, config=None) -> ExpressionManager:
    """Build an ExpressionManager. See ExpressionManager for the arguments."""
    return ExpressionManager(
        initial_state,
        initial_assignments=initial_assignments,
        context=context,
        scheduler=scheduler,
        config=config,
    )
