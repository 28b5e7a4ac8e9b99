from datetime import UTC, datetime

from eavesdrop import Entry, ListenerRegistry

ENTRY = Entry(id="e1", timestamp=datetime.now(UTC), level="info", method="info", args=("hi",))


def test_emit_reaches_every_listener_once():
    registry = ListenerRegistry()
    seen_a, seen_b = [], []
    registry.add(seen_a.append)
    registry.add(seen_b.append)

    registry.emit(ENTRY)

    assert seen_a == [ENTRY]
    assert seen_b == [ENTRY]


def test_failing_listener_does_not_stop_others():
    registry = ListenerRegistry()
    seen = []

    def explode(entry):
        raise RuntimeError("listener bug")

    registry.add(explode)
    registry.add(seen.append)

    registry.emit(ENTRY)  # must not raise

    assert seen == [ENTRY]


def test_unsubscribe_from_inside_callback():
    registry = ListenerRegistry()
    seen = []

    def once(entry):
        seen.append(("once", entry.id))
        subscription()

    subscription = registry.add(once)
    registry.add(lambda entry: seen.append(("other", entry.id)))

    registry.emit(ENTRY)
    registry.emit(ENTRY)

    assert seen == [("once", "e1"), ("other", "e1"), ("other", "e1")]
    assert len(registry) == 1


def test_unsubscribing_someone_else_mid_delivery_skips_them():
    registry = ListenerRegistry()
    seen = []
    later = None

    def first(entry):
        later.close()

    registry.add(first)
    later = registry.add(seen.append)

    registry.emit(ENTRY)

    assert seen == []


class TestSubscription:
    def test_close_is_idempotent(self):
        registry = ListenerRegistry()
        subscription = registry.add(lambda entry: None)

        subscription.close()
        subscription.close()
        subscription()

        assert not subscription.active
        assert len(registry) == 0

    def test_same_listener_twice_gets_two_handles(self):
        registry = ListenerRegistry()
        seen = []
        first = registry.add(seen.append)
        registry.add(seen.append)

        first.close()
        registry.emit(ENTRY)

        assert seen == [ENTRY]

    def test_context_manager(self):
        registry = ListenerRegistry()
        with registry.add(lambda entry: None) as subscription:
            assert subscription.active
        assert not subscription.active

    def test_clear_deactivates(self):
        registry = ListenerRegistry()
        subscription = registry.add(lambda entry: None)
        registry.clear()

        assert not subscription.active
        assert len(registry) == 0
