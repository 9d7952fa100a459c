"""Nagar Rakshak data models."""

from nagar_rakshak.models.assignment import AssignmentForm, AssignmentResult
from nagar_rakshak.models.complaint import (
    ASSIGNABLE_STATUSES,
    STATUS_ORDER,
    Complaint,
    ComplaintStatus,
    StatusUpdateRecord,
)
from nagar_rakshak.models.listing import (
    ComplaintPage,
    FilterState,
    ListPhase,
    PageState,
)
from nagar_rakshak.models.map_view import MapMarker, MapView
from nagar_rakshak.models.notice import Toast, ToastVariant
from nagar_rakshak.models.notification import GatewayResponse, SmsProviderConfig
from nagar_rakshak.models.query import (
    ComplaintQuery,
    Predicate,
    PredicateOperator,
    QueryResult,
)
from nagar_rakshak.models.realtime import ChangeEvent, ChangeOperation
from nagar_rakshak.models.stats import ComplaintStats

__all__ = [
    "ASSIGNABLE_STATUSES",
    "AssignmentForm",
    "AssignmentResult",
    "ChangeEvent",
    "ChangeOperation",
    "Complaint",
    "ComplaintPage",
    "ComplaintQuery",
    "ComplaintStats",
    "ComplaintStatus",
    "FilterState",
    "GatewayResponse",
    "ListPhase",
    "MapMarker",
    "MapView",
    "PageState",
    "Predicate",
    "PredicateOperator",
    "QueryResult",
    "SmsProviderConfig",
    "STATUS_ORDER",
    "StatusUpdateRecord",
    "Toast",
    "ToastVariant",
]
