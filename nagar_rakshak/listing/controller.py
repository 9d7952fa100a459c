"""
List Controller — the complaint browser's fetch/filter/paginate/sync cycle.

States:
  LOADING → READY
  LOADING → ERROR → (next trigger) → LOADING

Triggers that re-enter LOADING and re-fetch the current page:
  mount, any filter change (also resets to page 1), any page change,
  and any change event on the complaints table. Events are never inspected;
  the controller always re-fetches the full current page.

On failure the held rows and total are left as they were and an error
toast is raised. Requests are not cancelled or de-duplicated.
"""

import logging
from typing import List, Optional

from nagar_rakshak.config.settings import Settings
from nagar_rakshak.models.complaint import Complaint
from nagar_rakshak.models.listing import (
    ComplaintPage,
    FilterState,
    ListPhase,
    PageState,
)
from nagar_rakshak.models.realtime import ChangeEvent
from nagar_rakshak.notifier.toasts import Notifier
from nagar_rakshak.query.builder import QueryBuilder
from nagar_rakshak.record_store.changefeed import ChangeFeed, Subscription
from nagar_rakshak.record_store.store import COMPLAINTS_TABLE, RecordStore, RecordStoreError
from nagar_rakshak.stats.aggregator import StatsAggregator

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "admin-complaints"

_UNCHANGED = object()


def fetch_page(
    store: RecordStore,
    query_builder: QueryBuilder,
    filters: FilterState,
    page: PageState,
) -> ComplaintPage:
    """One filtered page plus its exact total. Raises RecordStoreError."""
    result = store.select_complaints(query_builder.build_page_query(filters, page))
    page = page.model_copy(update={"total_count": result.count or 0})
    complaints = [Complaint.model_validate(row) for row in result.rows]
    return ComplaintPage.from_state(complaints, page)


class ListController:
    def __init__(
        self,
        store: RecordStore,
        feed: Optional[ChangeFeed] = None,
        notifier: Optional[Notifier] = None,
        page_size: int = 5,
        stats: Optional[StatsAggregator] = None,
        query_builder: Optional[QueryBuilder] = None,
        channel: str = DEFAULT_CHANNEL,
    ):
        self.store = store
        self.feed = feed or store.feed
        self.notifier = notifier or Notifier()
        self.stats = stats
        self.query_builder = query_builder or QueryBuilder()
        self.channel = channel

        self.phase = ListPhase.LOADING
        self.filters = FilterState()
        self.page = PageState(page_size=page_size)
        self.complaints: List[Complaint] = []
        self.fetch_count = 0
        self._subscription: Optional[Subscription] = None

    @classmethod
    def from_settings(cls, store: RecordStore, settings: Settings, **kwargs) -> "ListController":
        """Controller using the configured page size and realtime channel."""
        return cls(
            store,
            page_size=settings.PAGE_SIZE,
            channel=settings.REALTIME_CHANNEL,
            **kwargs,
        )

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    @property
    def can_go_previous(self) -> bool:
        return self.page.has_previous

    @property
    def can_go_next(self) -> bool:
        return self.page.has_next

    # === LIFECYCLE ===

    def mount(self) -> ComplaintPage:
        """Fetch the first view and start listening for upstream changes."""
        if self._subscription is None:
            self._subscription = self.feed.subscribe(
                COMPLAINTS_TABLE, self._on_change, channel=self.channel
            )
        return self.refresh()

    def unmount(self) -> None:
        if self._subscription is not None:
            self.feed.unsubscribe(self._subscription)
            self._subscription = None

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug("Complaints changed (%s); re-fetching page %d",
                     event.operation.value, self.page.current_page)
        self.refresh()

    # === TRIGGERS ===

    def set_filters(self, status=_UNCHANGED, issue_type=_UNCHANGED) -> ComplaintPage:
        """
        Change one or both filters. Passing None, "" or "all" clears a filter.
        Any filter change resets to the first page.
        """
        current = self.filters.model_dump()
        if status is not _UNCHANGED:
            current["status"] = status
        if issue_type is not _UNCHANGED:
            current["issue_type"] = issue_type
        self.filters = FilterState.model_validate(current)
        self.page = self.page.model_copy(update={"current_page": 1})
        return self.refresh()

    def clear_filters(self) -> ComplaintPage:
        return self.set_filters(status=None, issue_type=None)

    def go_to_page(self, page_number: int) -> ComplaintPage:
        if page_number < 1:
            raise ValueError("Page numbers start at 1")
        self.page = self.page.model_copy(update={"current_page": page_number})
        return self.refresh()

    def next_page(self) -> ComplaintPage:
        """Advance one page; a no-op when "Next" is disabled."""
        if not self.can_go_next:
            return self.snapshot()
        return self.go_to_page(self.page.current_page + 1)

    def previous_page(self) -> ComplaintPage:
        """Go back one page; a no-op when "Previous" is disabled."""
        if not self.can_go_previous:
            return self.snapshot()
        return self.go_to_page(self.page.current_page - 1)

    # === FETCH ===

    def refresh(self) -> ComplaintPage:
        """Re-fetch the current page and, when attached, the stats."""
        self.phase = ListPhase.LOADING
        self.fetch_count += 1
        try:
            fetched = fetch_page(self.store, self.query_builder, self.filters, self.page)
        except RecordStoreError as e:
            logger.error("Error fetching complaints: %s", e)
            self.phase = ListPhase.ERROR
            self.notifier.error("Error fetching complaints")
        else:
            self.complaints = fetched.complaints
            self.page = self.page.model_copy(update={"total_count": fetched.total_count})
            self.phase = ListPhase.READY

        if self.stats is not None:
            self.stats.refresh()
        return self.snapshot()

    def snapshot(self) -> ComplaintPage:
        return ComplaintPage.from_state(list(self.complaints), self.page)
