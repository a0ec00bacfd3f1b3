"""
SignalBridge — exposes an ExpressionManager's state as reaktiv Signals.

Each state key read through the bridge gets a Signal that follows the
manager's VARIABLE_CHANGE events. Expressions become Computed values over
those Signals, so code already built on reaktiv can consume manager state:

    bridge = SignalBridge(manager)
    open_door = bridge.computed("button1 && button2")
    bridge.effect("button1 && button2", lambda value: print("door", value))
    manager.set_state({"button1": True, "button2": True})
    open_door()     # True
"""

import asyncio

from reaktiv import Signal, Computed, Effect

from expressions.identifiers import free_variables
from expressions.parser import parse


class SignalBridge:
    """Mirror of manager state as reaktiv Signals / Computed / Effects."""

    def __init__(self, manager):
        self._manager = manager
        self._signals = {}      # state key → Signal
        self._effects = []
        self._loop = None
        self._subscription = manager.on_event(self._on_event)

    def signal(self, key: str) -> Signal:
        """The Signal tracking ``key``, created on first use."""
        if key not in self._signals:
            self._signals[key] = Signal(self._manager.get_state().get(key))
        return self._signals[key]

    def computed(self, expression: str) -> Computed:
        """
        A Computed evaluating ``expression`` against manager state.
        It depends on the Signals of the expression's free variables.
        """
        node = parse(expression)
        signals = [self.signal(name) for name in free_variables(node)]

        def compute():
            for sig in signals:
                sig()   # register the dependency
            return self._manager._evaluate(node)

        return Computed(compute)

    def effect(self, expression: str, callback) -> Effect:
        """Call ``callback(value)`` whenever the expression's value changes."""
        computed_signal = self.computed(expression)

        def effect_fn():
            callback(computed_signal())

        eff = Effect(effect_fn)
        self._effects.append(eff)
        self._tick()
        return eff

    def dispose(self) -> None:
        """Stop following the manager and tear down effects."""
        self._manager.unsubscribe(self._subscription)
        for eff in self._effects:
            eff.dispose()
        self._effects.clear()
        self._signals.clear()

    def _on_event(self, event):
        for key, value in event.data.new_values.items():
            sig = self._signals.get(key)
            if sig is not None:
                sig.set(value)
        if self._effects:
            self._tick()

    def _tick(self):
        """Give reaktiv's scheduled effects a chance to run."""
        try:
            asyncio.get_running_loop()
            return      # effects run on the host's loop
        except RuntimeError:
            pass
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self._loop)
        self._loop.run_until_complete(asyncio.sleep(0))
