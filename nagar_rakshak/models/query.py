"""Read query description handed from the query builder to the record store."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel


class PredicateOperator(str, Enum):
    EQ = "eq"
    NOT_NULL = "not_null"


class Predicate(BaseModel):
    column: str
    operator: PredicateOperator = PredicateOperator.EQ
    value: Any = None


class ComplaintQuery(BaseModel):
    """
    Store-agnostic read query. All filtering, ordering and range
    restriction happen in the store so the exact count matches the rows.
    """

    columns: List[str] = ["*"]
    predicates: List[Predicate] = []
    range_from: Optional[int] = None       # Inclusive row offsets
    range_to: Optional[int] = None
    order_by: Optional[str] = None
    ascending: bool = True
    count_exact: bool = False


class QueryResult(BaseModel):
    rows: List[dict]
    count: Optional[int] = None            # Set only when count_exact was requested
