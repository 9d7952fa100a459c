"""
Query Builder — translates browsing state into record store reads.

Behavioral Contract:
- Always asks for an exact total count alongside the rows.
- Set filters become equality predicates; unset filters add nothing.
- Rows are restricted to the current page's inclusive range and ordered
  newest first.
- No client-side filtering or sorting: the count stays consistent with the page.
"""

from nagar_rakshak.models.listing import FilterState, PageState
from nagar_rakshak.models.query import ComplaintQuery, Predicate, PredicateOperator

MAP_COLUMNS = [
    "id",
    "complaint_code",
    "issue_type",
    "status",
    "gps_latitude",
    "gps_longitude",
]


class QueryBuilder:
    """Builds ComplaintQuery objects for the list and map views."""

    def __init__(self, order_by: str = "created_at"):
        self.order_by = order_by

    def build_page_query(self, filters: FilterState, page: PageState) -> ComplaintQuery:
        predicates = []
        if filters.status:
            predicates.append(Predicate(column="status", value=filters.status))
        if filters.issue_type:
            predicates.append(Predicate(column="issue_type", value=filters.issue_type))

        return ComplaintQuery(
            predicates=predicates,
            range_from=page.range_from,
            range_to=page.range_to,
            order_by=self.order_by,
            ascending=False,
            count_exact=True,
        )

    def build_map_query(self) -> ComplaintQuery:
        """Located complaints only: both coordinates present."""
        return ComplaintQuery(
            columns=list(MAP_COLUMNS),
            predicates=[
                Predicate(column="gps_latitude", operator=PredicateOperator.NOT_NULL),
                Predicate(column="gps_longitude", operator=PredicateOperator.NOT_NULL),
            ],
        )
