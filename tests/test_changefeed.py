"""Tests for the realtime Change Feed."""

from datetime import datetime

from nagar_rakshak.models.realtime import ChangeEvent, ChangeOperation
from nagar_rakshak.record_store.changefeed import ChangeFeed


def _event(table: str = "complaints", operation: ChangeOperation = ChangeOperation.UPDATE):
    return ChangeEvent(
        table=table,
        operation=operation,
        record_id="c1",
        occurred_at=datetime.utcnow(),
    )


class TestChangeFeed:
    def test_delivers_to_table_subscribers_only(self):
        feed = ChangeFeed()
        complaints, updates = [], []
        feed.subscribe("complaints", complaints.append)
        feed.subscribe("complaint_status_updates", updates.append)

        delivered = feed.publish(_event("complaints"))

        assert delivered == 1
        assert len(complaints) == 1
        assert updates == []

    def test_unsubscribe_stops_delivery(self):
        feed = ChangeFeed()
        received = []
        sub = feed.subscribe("complaints", received.append)
        assert feed.unsubscribe(sub) is True
        assert feed.unsubscribe(sub) is False

        feed.publish(_event())
        assert received == []

    def test_failing_subscriber_does_not_block_others(self, caplog):
        feed = ChangeFeed()
        received = []

        def broken(event):
            raise RuntimeError("render failed")

        feed.subscribe("complaints", broken)
        feed.subscribe("complaints", received.append)

        delivered = feed.publish(_event())

        assert delivered == 1
        assert len(received) == 1
        assert "failed on UPDATE complaints" in caplog.text

    def test_remove_channel(self):
        feed = ChangeFeed()
        feed.subscribe("complaints", lambda e: None, channel="admin-complaints")
        feed.subscribe("complaints_status_updates", lambda e: None, channel="admin-complaints")
        feed.subscribe("complaints", lambda e: None, channel="map")

        assert feed.remove_channel("admin-complaints") == 2
        assert len(feed.subscribers("complaints")) == 1

    def test_subscriber_may_unsubscribe_during_delivery(self):
        feed = ChangeFeed()
        calls = []

        def once(event):
            calls.append(event)
            feed.unsubscribe(sub)

        sub = feed.subscribe("complaints", once)
        feed.publish(_event())
        feed.publish(_event())
        assert len(calls) == 1
