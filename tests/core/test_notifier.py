"""
ChangeNotifier - Unit Tests

Covers:
- Subscription/unsubscription (including repeated unsubscribe)
- Identity-based filtering
- Multiple key paths per subscription
- Old value pass-through
- Error handling and introspection
"""
import gc
import pytest
from unittest.mock import MagicMock

from keypath_bindings.core.events import (
    MISSING, ChangeEvent, ChangeNotifier, Subscription, default_notifier,
)
from keypath_bindings.ui.mvvm.keypath import KeyPath


class Counter:
    int_value1: int = 0
    int_value2: int = 0


class TestChangeNotifierDelivery:
    """Emit reaches exactly the matching subscriptions."""

    def test_emit_calls_handler_for_matching_property(self, notifier):
        counter = Counter()
        handler = MagicMock()
        notifier.subscribe(counter, "int_value1", handler)

        counter.int_value1 += 1
        delivered = notifier.emit(counter, "int_value1")
        # A different property of the same object is not delivered
        notifier.emit(counter, "int_value2")

        assert delivered == 1
        handler.assert_called_once()
        event = handler.call_args.args[0]
        assert isinstance(event, ChangeEvent)
        assert event.subject is counter
        assert event.property_name == "int_value1"
        assert event.new_value == 1

    def test_multiple_key_paths(self, notifier):
        counter = Counter()
        names = []
        notifier.subscribe(counter, {"int_value1", "int_value2"}, lambda e: names.append(e.property_name))

        notifier.emit(counter, "int_value1")
        notifier.emit(counter, "int_value2")

        assert sorted(names) == ["int_value1", "int_value2"]

    def test_key_path_and_name_are_interchangeable(self, notifier):
        counter = Counter()
        handler = MagicMock()
        notifier.subscribe(counter, KeyPath.of(Counter, "int_value1"), handler)

        notifier.emit(counter, "int_value1")

        handler.assert_called_once()

    def test_other_objects_do_not_receive_events(self, notifier):
        watched = Counter()
        other = Counter()
        handler = MagicMock()
        notifier.subscribe(watched, "int_value1", handler)

        notifier.emit(other, "int_value1")

        handler.assert_not_called()

    def test_filtering_is_by_identity_not_equality(self, notifier):
        class AlwaysEqual:
            def __eq__(self, other):
                return True

            def __hash__(self):
                return 1

        watched, twin = AlwaysEqual(), AlwaysEqual()
        handler = MagicMock()
        notifier.subscribe(watched, "value", handler)

        notifier.emit(twin, "value")

        handler.assert_not_called()

    def test_all_subscriptions_for_same_pair_fire(self, notifier):
        counter = Counter()
        first, second = MagicMock(), MagicMock()
        notifier.subscribe(counter, "int_value1", first)
        notifier.subscribe(counter, "int_value1", second)

        assert notifier.emit(counter, "int_value1") == 2
        first.assert_called_once()
        second.assert_called_once()

    def test_emit_without_subscribers_is_noop(self, notifier):
        assert notifier.emit(Counter(), "int_value1") == 0

    def test_old_value_passed_through(self, notifier):
        counter = Counter()
        events = []
        notifier.subscribe(counter, "int_value1", events.append)

        notifier.emit(counter, "int_value1", old_value=41)
        notifier.emit(counter, "int_value1")

        assert events[0].has_old_value and events[0].old_value == 41
        assert not events[1].has_old_value
        assert events[1].old_value is MISSING

    def test_none_is_a_real_old_value(self, notifier):
        counter = Counter()
        events = []
        notifier.subscribe(counter, "int_value1", events.append)

        notifier.emit(counter, "int_value1", old_value=None)

        assert events[0].has_old_value
        assert events[0].old_value is None


class TestChangeNotifierUnsubscribe:
    """Unsubscribe stops delivery and is idempotent."""

    def test_unsubscribe_stops_delivery(self, notifier):
        counter = Counter()
        handler = MagicMock()
        subscription = notifier.subscribe(counter, "int_value1", handler)

        notifier.unsubscribe(subscription)
        notifier.emit(counter, "int_value1")

        handler.assert_not_called()
        assert not subscription.active

    def test_double_unsubscribe_is_safe(self, notifier):
        subscription = notifier.subscribe(Counter(), "int_value1", MagicMock())

        notifier.unsubscribe(subscription)
        notifier.unsubscribe(subscription)
        notifier.unsubscribe(None)

        assert notifier.subscription_count() == 0

    def test_cancel_on_subscription(self, notifier):
        counter = Counter()
        subscription = notifier.subscribe(counter, "int_value1", MagicMock())

        subscription.cancel()

        assert not notifier.has_subscribers(counter)

    def test_handler_can_unsubscribe_itself(self, notifier):
        counter = Counter()
        calls = []

        def once(event):
            calls.append(event)
            notifier.unsubscribe(subscription)

        subscription = notifier.subscribe(counter, "int_value1", once)

        notifier.emit(counter, "int_value1")
        notifier.emit(counter, "int_value1")

        assert len(calls) == 1

    def test_unsubscribe_during_emit_skips_pending_handler(self, notifier):
        counter = Counter()
        second = MagicMock()

        def first(event):
            notifier.unsubscribe(second_subscription)

        notifier.subscribe(counter, "int_value1", first)
        second_subscription = notifier.subscribe(counter, "int_value1", second)

        notifier.emit(counter, "int_value1")

        second.assert_not_called()

    def test_subscription_from_other_notifier_is_ignored(self, notifier):
        other = ChangeNotifier("other")
        counter = Counter()
        foreign = other.subscribe(counter, "int_value1", MagicMock())

        notifier.unsubscribe(foreign)

        assert other.has_subscribers(counter, "int_value1")


class TestChangeNotifierLifetime:
    """The notifier never keeps subjects alive."""

    def test_subject_is_held_weakly(self, notifier):
        counter = Counter()
        subscription = notifier.subscribe(counter, "int_value1", MagicMock())

        del counter
        gc.collect()

        assert subscription.subject is None
        assert notifier.subscription_count() == 0

    def test_subject_without_weakref_support_is_rejected(self, notifier):
        class Slotted:
            __slots__ = ("value",)

        with pytest.raises(TypeError):
            notifier.subscribe(Slotted(), "value", MagicMock())

    def test_subscription_count_per_subject(self, notifier):
        a, b = Counter(), Counter()
        notifier.subscribe(a, "int_value1", MagicMock())
        notifier.subscribe(a, "int_value2", MagicMock())
        notifier.subscribe(b, "int_value1", MagicMock())

        assert notifier.subscription_count(a) == 2
        assert notifier.subscription_count(b) == 1
        assert notifier.subscription_count() == 3
        assert notifier.has_subscribers(a, "int_value2")
        assert not notifier.has_subscribers(b, "int_value2")

    def test_clear_cancels_everything(self, notifier):
        counter = Counter()
        subscription = notifier.subscribe(counter, "int_value1", MagicMock())

        notifier.clear()

        assert not subscription.active
        assert notifier.emit(counter, "int_value1") == 0


class TestChangeNotifierErrors:

    def test_handler_error_does_not_block_others(self, notifier, caplog):
        counter = Counter()
        results = []

        def buggy(event):
            raise ValueError("Bug")

        notifier.subscribe(counter, "int_value1", buggy)
        notifier.subscribe(counter, "int_value1", lambda e: results.append("ok"))

        notifier.emit(counter, "int_value1")

        assert results == ["ok"]
        assert "Bug" in caplog.text

    def test_empty_key_path_set_rejected(self, notifier):
        with pytest.raises(ValueError):
            notifier.subscribe(Counter(), set(), MagicMock())

    def test_invalid_key_path_rejected(self, notifier):
        with pytest.raises(TypeError):
            notifier.subscribe(Counter(), 42, MagicMock())


def test_default_notifier_is_singleton():
    assert default_notifier() is default_notifier()
    assert isinstance(default_notifier(), ChangeNotifier)


def test_subscription_repr_mentions_state(notifier):
    counter = Counter()
    subscription = notifier.subscribe(counter, "int_value1", MagicMock())
    assert isinstance(subscription, Subscription)
    assert "active" in repr(subscription)
