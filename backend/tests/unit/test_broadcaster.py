"""Unit tests for the realtime broadcaster and change notifier"""

import asyncio
import uuid

import pytest

from paperflow.realtime.hub import MAX_PENDING_EVENTS, Broadcaster, ChangeEvent, QueueSubscriber
from paperflow.realtime.notifier import PAPER_DELETED, PAPER_UPDATED, ChangeNotifier

from factories import RecordingSubscriber


class ExplodingSubscriber:
    def deliver(self, event):
        raise RuntimeError("socket closed")


class TestBroadcaster:

    def test_publish_reaches_every_subscriber(self, broadcaster):
        first, second = RecordingSubscriber(), RecordingSubscriber()
        broadcaster.subscribe(first)
        broadcaster.subscribe(second)

        delivered = broadcaster.publish("paperUpdated", {"id": "1"})

        assert delivered == 2
        assert first.names == ["paperUpdated"]
        assert second.events[0].data == {"id": "1"}

    def test_events_arrive_in_publish_order(self, broadcaster, recorder):
        broadcaster.publish("paperUpdated", {"n": 1})
        broadcaster.publish("paperDeleted", {"n": 2})
        broadcaster.publish("paperUpdated", {"n": 3})

        assert [e.data["n"] for e in recorder.events] == [1, 2, 3]

    def test_late_subscriber_gets_no_backlog(self, broadcaster):
        broadcaster.publish("paperUpdated", {"id": "early"})
        late = RecordingSubscriber()
        broadcaster.subscribe(late)

        assert late.events == []

    def test_unsubscribe(self, broadcaster):
        subscriber = RecordingSubscriber()
        handle = broadcaster.subscribe(subscriber)

        assert broadcaster.unsubscribe(handle) is True
        assert broadcaster.unsubscribe(handle) is False
        assert broadcaster.publish("paperUpdated", {}) == 0
        assert broadcaster.subscriber_count == 0

    def test_failing_subscriber_does_not_affect_others(self, broadcaster, recorder):
        broadcaster.subscribe(ExplodingSubscriber())

        delivered = broadcaster.publish("paperUpdated", {"id": "1"})

        assert delivered == 1
        assert recorder.names == ["paperUpdated"]

    def test_no_subscribers(self):
        assert Broadcaster().publish("paperUpdated", {}) == 0


def test_change_event_message_shape():
    event = ChangeEvent(event="paperDeleted", data={"id": "abc"})
    assert event.to_message() == {"event": "paperDeleted", "data": {"id": "abc"}}
    assert event.ts_utc.tzinfo is not None


def test_queue_subscriber_hands_events_to_loop():
    async def scenario():
        subscriber = QueueSubscriber(asyncio.get_running_loop())
        subscriber.deliver(ChangeEvent(event="paperUpdated", data={"id": "1"}))
        return await asyncio.wait_for(subscriber.next_event(), timeout=1)

    received = asyncio.run(scenario())
    assert received.event == "paperUpdated"


def test_stalled_subscriber_drops_events_past_its_bound(broadcaster):
    async def scenario():
        subscriber = QueueSubscriber(asyncio.get_running_loop(), maxsize=2)
        broadcaster.subscribe(subscriber)
        delivered = []
        for n in range(3):
            delivered.append(broadcaster.publish("paperUpdated", {"n": n}))
            await asyncio.sleep(0)
        drained = [subscriber.queue.get_nowait().data["n"] for _ in range(subscriber.queue.qsize())]
        return delivered, drained

    delivered, drained = asyncio.run(scenario())

    assert delivered == [1, 1, 0]
    assert drained == [0, 1]


def test_burst_overflow_is_dropped_on_the_loop():
    async def scenario():
        subscriber = QueueSubscriber(asyncio.get_running_loop(), maxsize=2)
        for n in range(3):
            subscriber.deliver(ChangeEvent(event="paperUpdated", data={"n": n}))
        await asyncio.sleep(0)
        return [subscriber.queue.get_nowait().data["n"] for _ in range(subscriber.queue.qsize())]

    assert asyncio.run(scenario()) == [0, 1]


def test_queue_subscriber_is_bounded_by_default():
    async def scenario():
        return QueueSubscriber(asyncio.get_running_loop()).queue.maxsize

    assert asyncio.run(scenario()) == MAX_PENDING_EVENTS


class TestChangeNotifier:

    def test_paper_updated_publishes_full_snapshot(self, notifier, recorder, draft_paper):
        recorder.events.clear()

        assert notifier.paper_updated(draft_paper) == 1

        event = recorder.events[0]
        assert event.event == PAPER_UPDATED
        assert event.data["id"] == str(draft_paper.id)
        assert event.data["status"] == "draft"
        assert event.data["lecturer_name"] == "Lena Lecturer"
        assert event.data["attachment_url"].startswith("/uploads/papers/")

    def test_paper_deleted_publishes_bare_id(self, notifier, recorder):
        paper_id = uuid.uuid4()

        notifier.paper_deleted(paper_id)

        assert recorder.events[0].event == PAPER_DELETED
        assert recorder.events[0].data == str(paper_id)

    def test_broken_broadcaster_is_swallowed(self):
        class BrokenBroadcaster:
            def publish(self, event, data):
                raise ConnectionError("bus down")

        notifier = ChangeNotifier(BrokenBroadcaster())
        assert notifier.paper_deleted(uuid.uuid4()) == 0

    def test_unserialisable_paper_is_swallowed(self, notifier, recorder):
        assert notifier.paper_updated(object()) == 0
        assert recorder.events == []
