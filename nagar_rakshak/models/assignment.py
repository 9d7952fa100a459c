"""Assignment dialog form and the outcome of the two-step write."""

from typing import Optional

from pydantic import BaseModel

from nagar_rakshak.models.complaint import StatusUpdateRecord


class AssignmentForm(BaseModel):
    status: str = ""
    worker_name: str = ""
    worker_contact: str = ""
    note: str = ""

    def missing_fields(self) -> list:
        """Required fields that are empty or whitespace."""
        return [
            name for name in ("worker_name", "worker_contact", "status")
            if not getattr(self, name).strip()
        ]


class AssignmentResult(BaseModel):
    """
    Outcome of a submitted assignment. ``complaint_updated`` with
    ``audited=False`` is the partial state left when the audit insert fails.
    """

    complaint_id: str
    complaint_updated: bool = False
    audited: bool = False
    audit_record: Optional[StatusUpdateRecord] = None
    queued_for_retry: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.complaint_updated and self.audited
