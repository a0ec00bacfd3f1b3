"""
Tests for SignalBridge: manager state mirrored as reaktiv Signals.
"""

import pytest

from reactive import ManualScheduler, SignalBridge, create_expression_manager


@pytest.fixture
def manager():
    return create_expression_manager({"a": 1, "b": 2}, scheduler=ManualScheduler())


@pytest.fixture
def bridge(manager):
    bridge = SignalBridge(manager)
    yield bridge
    bridge.dispose()


class TestSignals:
    def test_signal_starts_at_current_value(self, bridge):
        assert bridge.signal("a")() == 1

    def test_signal_for_missing_key(self, bridge):
        assert bridge.signal("nothing")() is None

    def test_signal_follows_set_state(self, manager, bridge):
        sig = bridge.signal("a")
        manager.set_state({"a": 5})
        assert sig() == 5

    def test_same_key_same_signal(self, bridge):
        assert bridge.signal("a") is bridge.signal("a")


class TestComputed:
    def test_computed_value(self, bridge):
        assert bridge.computed("a + b")() == 3

    def test_computed_follows_set_state(self, manager, bridge):
        total = bridge.computed("a + b")
        assert total() == 3
        manager.set_state({"a": 10})
        assert total() == 12

    def test_computed_follows_index_variable(self, manager, bridge):
        manager.set_state({"items": [10, 20], "i": 0})
        picked = bridge.computed("items[i]")
        assert picked() == 10
        manager.set_state({"i": 1})
        assert picked() == 20

    def test_computed_sees_assignment_results(self, manager, bridge):
        manager.add_runtime_assignment("c", "a * b")
        c = bridge.computed("c")
        manager.set_state({"a": 4})
        assert c() == 8


class TestEffect:
    def test_effect_fires_on_change(self, manager, bridge):
        fired = []
        bridge.effect("a * 2", fired.append)
        initial_count = len(fired)

        manager.set_state({"a": 10})

        assert len(fired) > initial_count
        assert fired[-1] == 20

    def test_effect_ignores_unrelated_keys(self, manager, bridge):
        fired = []
        bridge.effect("a * 2", fired.append)
        initial_count = len(fired)

        manager.set_state({"unrelated": 1})

        assert len(fired) == initial_count


class TestDispose:
    def test_dispose_stops_following(self, manager):
        bridge = SignalBridge(manager)
        sig = bridge.signal("a")
        bridge.dispose()

        manager.set_state({"a": 99})

        assert sig() == 1
