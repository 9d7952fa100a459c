"""
Realtime Change Feed — push notifications for row-level changes.

Behavioral Contract:
- Subscribers register per table on a named channel.
- Every committed write on a table is delivered to every subscriber of it.
- A failing subscriber is logged and never blocks delivery to the others,
  nor fails the write that produced the event.
- Delivery is synchronous with the write; consumers should treat events as
  a generic "something changed" signal, including echoes of their own writes.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List
from uuid import uuid4

from nagar_rakshak.models.realtime import ChangeEvent

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], None]


@dataclass
class Subscription:
    table: str
    channel: str
    callback: ChangeCallback
    id: str = field(default_factory=lambda: f"sub_{uuid4().hex[:12]}")


class ChangeFeed:
    """In-process change feed shared by the store and its observers."""

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}

    def subscribe(
        self, table: str, callback: ChangeCallback, channel: str = "default"
    ) -> Subscription:
        """Register a callback for every change on ``table``."""
        subscription = Subscription(table=table, channel=channel, callback=callback)
        self._subscriptions[subscription.id] = subscription
        logger.debug("Subscribed %s to %s on channel %s", subscription.id, table, channel)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        removed = self._subscriptions.pop(subscription.id, None) is not None
        if removed:
            logger.debug("Unsubscribed %s from %s", subscription.id, subscription.table)
        return removed

    def remove_channel(self, channel: str) -> int:
        """Drop every subscription on a channel. Returns how many were removed."""
        ids = [s.id for s in self._subscriptions.values() if s.channel == channel]
        for sub_id in ids:
            del self._subscriptions[sub_id]
        return len(ids)

    def subscribers(self, table: str) -> List[Subscription]:
        return [s for s in self._subscriptions.values() if s.table == table]

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to the table's subscribers. Returns the delivery count."""
        delivered = 0
        # Snapshot: callbacks may subscribe or unsubscribe while we iterate.
        for subscription in self.subscribers(event.table):
            try:
                subscription.callback(event)
                delivered += 1
            except Exception:
                logger.error(
                    "Change subscriber %s failed on %s %s",
                    subscription.id,
                    event.operation.value,
                    event.table,
                    exc_info=True,
                )
        return delivered
