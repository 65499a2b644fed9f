"""
Tests for the typed event bus.
"""
from tycoon_behavior.events import EngineEvent, EventBus, EventKind


class TestEventBus:
    def test_publish_and_poll(self):
        bus = EventBus()
        bus.publish(EventKind.PATTERN_ADDED, payload={"pattern_id": "x"})
        bus.publish(EventKind.ERROR, agent_id="bot", payload={"type": "boom"})

        events = bus.poll()
        assert [e.kind for e in events] == [EventKind.PATTERN_ADDED, EventKind.ERROR]
        assert events[0].seq < events[1].seq
        assert bus.pending() == 0

    def test_poll_max_items(self):
        bus = EventBus()
        for _ in range(5):
            bus.publish(EventKind.ERROR)
        assert len(bus.poll(2)) == 2
        assert bus.pending() == 3

    def test_bounded_buffer_drops_oldest(self):
        bus = EventBus(maxlen=3)
        for i in range(5):
            bus.publish(EventKind.ERROR, payload={"i": i})
        events = bus.poll()
        assert [e.payload["i"] for e in events] == [2, 3, 4]
        assert bus.dropped == 2

    def test_callable_observer(self):
        bus = EventBus()
        seen = []
        callback = bus.subscribe(seen.append)
        bus.publish(EventKind.PATTERN_REMOVED)
        assert len(seen) == 1 and isinstance(seen[0], EngineEvent)

        assert bus.unsubscribe(callback)
        bus.publish(EventKind.PATTERN_REMOVED)
        assert len(seen) == 1

    def test_object_observer(self):
        class Recorder:
            def __init__(self):
                self.kinds = []

            def on_event(self, event):
                self.kinds.append(event.kind)

        bus = EventBus()
        recorder = Recorder()
        bus.subscribe(recorder)
        bus.publish(EventKind.BEHAVIOR_SELECTED, agent_id="bot")
        assert recorder.kinds == [EventKind.BEHAVIOR_SELECTED]

    def test_failing_observer_does_not_break_publish(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("observer bug")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        event = bus.publish(EventKind.ERROR)
        assert seen == [event]

    def test_to_dict(self):
        event = EventBus().publish(EventKind.PERSONALITY_ADJUSTED, agent_id="bot", payload={"mood": "cautious"})
        data = event.to_dict()
        assert data["kind"] == "personality_adjusted"
        assert data["agent_id"] == "bot"
        assert data["payload"] == {"mood": "cautious"}
