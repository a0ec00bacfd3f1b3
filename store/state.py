"""
Flat key/value state with per-key change subscriptions.

set_state() applies a patch key by key. Every key whose value actually
changes notifies, synchronously and in patch order, the listeners of that
key and then the catch-all listeners. Writing an equal value notifies no
one. There is no batching here; the expression manager groups changes
into events.
"""

import itertools
from dataclasses import dataclass
from typing import Any, Callable, Optional

from expressions.values import strict_equals


@dataclass(frozen=True)
class StateChange:
    """Notification payload for one key change."""
    prop: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class Subscription:
    """Handle returned by on_change(); pass it to unsubscribe()."""
    id: int
    key: Optional[str] = None   # None → every key


class StateStore:
    """
    In-process state store.

    Subscribe to one key, or to every key with key=None. Not thread-safe:
    a store belongs to one thread of control.
    """

    def __init__(self, initial_state=None):
        self._state = dict(initial_state or {})
        self._listeners = {}            # key (None = all) → {subscription_id: callback}
        self._ids = itertools.count(1)

    def get_state(self) -> dict:
        """The live state dict. Treat it as read-only; write with set_state()."""
        return self._state

    def get(self, key, default=None):
        return self._state.get(key, default)

    def set_state(self, patch) -> None:
        """Apply ``patch`` key by key, notifying for each changed key."""
        for key, value in dict(patch).items():
            self._assign(key, value)

    def on_change(self, callback: Callable[[StateChange], None], key: Optional[str] = None) -> Subscription:
        """Call ``callback(StateChange)`` whenever ``key`` (or any key) changes."""
        subscription = Subscription(next(self._ids), key)
        self._listeners.setdefault(key, {})[subscription.id] = callback
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        listeners = self._listeners.get(subscription.key, {})
        return listeners.pop(subscription.id, None) is not None

    def dispose(self) -> None:
        """Drop every subscription."""
        self._listeners.clear()

    def _assign(self, key, value):
        old_value = self._state.get(key)
        if strict_equals(old_value, value):
            return
        self._state[key] = value

        change = StateChange(prop=key, old_value=old_value, new_value=value)
        listeners = list(self._listeners.get(key, {}).values())
        if key is not None:
            listeners += list(self._listeners.get(None, {}).values())

        for cb in listeners:
            cb(change)
