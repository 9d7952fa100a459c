"""Complaint records and their append-only status-update trail."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ComplaintStatus(str, Enum):
    REGISTERED = "Registered"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In-Progress"
    RESOLVED = "Resolved"


# Documented lifecycle order. Not enforced unless the workflow opts in.
STATUS_ORDER = [
    ComplaintStatus.REGISTERED,
    ComplaintStatus.ASSIGNED,
    ComplaintStatus.IN_PROGRESS,
    ComplaintStatus.RESOLVED,
]

# Statuses an admin can pick in the update dialog.
ASSIGNABLE_STATUSES = [
    ComplaintStatus.ASSIGNED,
    ComplaintStatus.IN_PROGRESS,
    ComplaintStatus.RESOLVED,
]


class Complaint(BaseModel):
    """A citizen complaint as held in the record store."""

    id: str
    complaint_code: str                     # Human-readable, e.g. "NR-2024-0001"
    issue_type: str
    description: str = ""
    city: str = ""
    state: str = ""
    gps_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    gps_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: str = ComplaintStatus.REGISTERED.value
    assigned_to: Optional[str] = None
    created_at: datetime

    @property
    def is_located(self) -> bool:
        return self.gps_latitude is not None and self.gps_longitude is not None


class StatusUpdateRecord(BaseModel):
    """
    Audit row for one status transition. Append-only: created by the
    assignment workflow and never modified or deleted.
    """

    id: str
    complaint_id: str
    status: str
    assigned_to: str
    assigned_contact: str
    note: str = ""
    created_at: datetime
