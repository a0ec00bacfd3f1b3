"""
Flat key/value state store with per-key change subscriptions.
"""

from store.state import StateStore, StateChange, Subscription
