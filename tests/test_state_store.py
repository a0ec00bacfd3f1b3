"""
Tests for StateStore: change detection, notification order, subscriptions.
"""

import pytest

from store.state import StateStore, StateChange


@pytest.fixture
def store():
    return StateStore({"a": 1})


class TestSetState:
    def test_initial_state(self, store):
        assert store.get_state() == {"a": 1}
        assert store.get("a") == 1
        assert store.get("missing", "dflt") == "dflt"

    def test_initial_state_is_copied(self):
        initial = {"a": 1}
        StateStore(initial).set_state({"a": 2})
        assert initial == {"a": 1}

    def test_live_state(self, store):
        state = store.get_state()
        store.set_state({"b": 2})
        assert state["b"] == 2

    def test_change_payload(self, store):
        changes = []
        store.on_change(changes.append)
        store.set_state({"a": 2})
        assert changes == [StateChange(prop="a", old_value=1, new_value=2)]

    def test_patch_order(self, store):
        seen = []
        store.on_change(lambda c: seen.append(c.prop))
        store.set_state({"z": 1, "a": 5, "m": 2})
        assert seen == ["z", "a", "m"]


class TestChangeDetection:
    def test_equal_value_does_not_notify(self, store):
        changes = []
        store.on_change(changes.append)
        store.set_state({"a": 1})
        assert changes == []

    def test_int_and_float_are_equal(self, store):
        changes = []
        store.on_change(changes.append)
        store.set_state({"a": 1.0})
        assert changes == []

    def test_bool_is_not_number(self, store):
        changes = []
        store.on_change(changes.append)
        store.set_state({"a": True})
        assert len(changes) == 1

    def test_none_on_absent_key_is_no_change(self, store):
        changes = []
        store.on_change(changes.append)
        store.set_state({"k": None})
        assert changes == []
        assert "k" not in store.get_state()

    def test_containers_compare_by_identity(self):
        items = [1]
        store = StateStore({"items": items})
        changes = []
        store.on_change(changes.append)
        store.set_state({"items": items})
        assert changes == []
        store.set_state({"items": [1]})
        assert len(changes) == 1


class TestSubscriptions:
    def test_key_listeners_before_wildcard(self, store):
        order = []
        store.on_change(lambda c: order.append("any"))
        store.on_change(lambda c: order.append("a"), key="a")
        store.set_state({"a": 2})
        assert order == ["a", "any"]

    def test_key_listener_ignores_other_keys(self, store):
        seen = []
        store.on_change(seen.append, key="a")
        store.set_state({"b": 1})
        assert seen == []

    def test_listeners_in_registration_order(self, store):
        order = []
        store.on_change(lambda c: order.append(1), key="a")
        store.on_change(lambda c: order.append(2), key="a")
        store.set_state({"a": 2})
        assert order == [1, 2]

    def test_unsubscribe(self, store):
        seen = []
        sub = store.on_change(seen.append, key="a")
        assert store.unsubscribe(sub) is True
        assert store.unsubscribe(sub) is False
        store.set_state({"a": 2})
        assert seen == []

    def test_subscription_ids_are_unique(self, store):
        first = store.on_change(lambda c: None)
        second = store.on_change(lambda c: None, key="a")
        assert first.id != second.id
        assert second.key == "a"

    def test_dispose_drops_listeners(self, store):
        seen = []
        store.on_change(seen.append)
        store.dispose()
        store.set_state({"a": 2})
        assert seen == []
        assert store.get("a") == 2

    def test_listener_errors_propagate(self, store):
        def boom(change):
            raise RuntimeError("listener failed")

        store.on_change(boom)
        with pytest.raises(RuntimeError):
            store.set_state({"a": 2})
        # the value was stored before listeners ran
        assert store.get("a") == 2

    def test_nested_write_from_listener(self, store):
        seen = []

        def mirror(change):
            seen.append(change.prop)
            if change.prop == "a":
                store.set_state({"b": change.new_value * 10})

        store.on_change(mirror)
        store.set_state({"a": 2})
        assert store.get("b") == 20
        assert seen == ["a", "b"]
