"""
Assignment Workflow — assign a worker and record the status transition.

Behavioral Contract:
- Validates locally first: a complaint must be selected and worker name,
  worker contact and target status must be non-empty, and the target status
  must be one the dialog offers (Assigned, In-Progress, Resolved). Nothing
  touches the store when validation fails.
- Two writes, not atomic:
    1. update the complaint's status and assignee
    2. append a StatusUpdateRecord for the same complaint
- If step 1 fails, step 2 is not attempted.
- If step 2 fails, the complaint stays updated but unaudited. No rollback.
  When an AuditRetryQueue is supplied, the missing audit row is queued and
  can be re-attempted with retry_pending().
- Completion is observed by list views through the change feed, not by
  a direct callback.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from nagar_rakshak.models.assignment import AssignmentForm, AssignmentResult
from nagar_rakshak.models.complaint import (
    ASSIGNABLE_STATUSES,
    STATUS_ORDER,
    Complaint,
    ComplaintStatus,
    StatusUpdateRecord,
)
from nagar_rakshak.notifier.toasts import Notifier
from nagar_rakshak.record_store.store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


class AssignmentValidationError(Exception):
    """Raised when a submission fails local validation."""

    def __init__(self, message: str, title: str = "Please fill all fields"):
        super().__init__(message)
        self.title = title


def is_forward_transition(current: Optional[str], target: str) -> bool:
    """True when ``target`` is not earlier than ``current`` in the lifecycle."""
    order = [s.value for s in STATUS_ORDER]
    if current not in order or target not in order:
        return True
    return order.index(target) >= order.index(current)


class AuditRetryQueue:
    """Audit rows whose insert failed after the complaint was updated."""

    def __init__(self):
        self._pending: List[StatusUpdateRecord] = []

    def enqueue(self, record: StatusUpdateRecord) -> None:
        self._pending.append(record)

    @property
    def pending(self) -> List[StatusUpdateRecord]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def drain(self, store: RecordStore) -> List[StatusUpdateRecord]:
        """Re-attempt every queued insert; failures stay queued."""
        written = []
        remaining = []
        for record in self._pending:
            try:
                written.append(store.insert_status_update(record))
            except RecordStoreError as e:
                logger.warning("Audit retry failed for complaint %s: %s", record.complaint_id, e)
                remaining.append(record)
        self._pending = remaining
        return written


class AssignmentWorkflow:
    """
    Holds the update dialog's state for one selected complaint.

    ``enforce_forward_order`` rejects transitions that move a complaint back
    in the Registered → Assigned → In-Progress → Resolved order. It is off by
    default: any status may be set from any other.
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[Notifier] = None,
        retry_queue: Optional[AuditRetryQueue] = None,
        enforce_forward_order: bool = False,
    ):
        self.store = store
        self.notifier = notifier or Notifier()
        self.retry_queue = retry_queue
        self.enforce_forward_order = enforce_forward_order

        self.selected: Optional[Complaint] = None
        self.form = AssignmentForm()
        self.dialog_open = False

    @staticmethod
    def can_open(complaint: Complaint) -> bool:
        return complaint.status != ComplaintStatus.RESOLVED.value

    def open(self, complaint: Complaint) -> AssignmentForm:
        """Select a complaint and pre-fill the form from its current state."""
        if not self.can_open(complaint):
            raise AssignmentValidationError(
                f"Complaint {complaint.complaint_code} is already resolved",
                title="Complaint already resolved",
            )
        self.selected = complaint
        self.form = AssignmentForm(
            status=complaint.status or "",
            worker_name=complaint.assigned_to or "",
        )
        self.dialog_open = True
        return self.form

    def close(self) -> None:
        self.dialog_open = False
        self.selected = None
        self.form = AssignmentForm()

    def validate(self) -> None:
        if self.selected is None:
            raise AssignmentValidationError("No complaint selected", title="No complaint selected")
        missing = self.form.missing_fields()
        if missing:
            raise AssignmentValidationError(f"Missing fields: {', '.join(missing)}")
        target = self.form.status.strip()
        if target not in {s.value for s in ASSIGNABLE_STATUSES}:
            raise AssignmentValidationError(
                f"Unknown status: {target}",
                title="Invalid status",
            )
        if self.enforce_forward_order and not is_forward_transition(
            self.selected.status, target
        ):
            raise AssignmentValidationError(
                f"Cannot move complaint from {self.selected.status} back to {target}",
                title="Invalid status change",
            )

    def submit(self, form: Optional[AssignmentForm] = None) -> Optional[AssignmentResult]:
        """
        Validate and commit the two-step write. Returns None when validation
        rejects the submission, otherwise the (possibly partial) result.
        """
        if form is not None:
            self.form = form

        try:
            self.validate()
        except AssignmentValidationError as e:
            logger.info("Assignment rejected: %s", e)
            self.notifier.error(e.title, str(e))
            return None

        complaint = self.selected
        form = self.form
        worker_name = form.worker_name.strip()
        status = form.status.strip()
        result = AssignmentResult(complaint_id=complaint.id)

        # Step 1: complaint row
        try:
            self.store.update_complaint(
                complaint.id, {"status": status, "assigned_to": worker_name}
            )
        except RecordStoreError as e:
            logger.error("Error assigning worker to %s: %s", complaint.id, e)
            self.notifier.error("Error assigning worker")
            result.error = str(e)
            return result
        result.complaint_updated = True

        # Step 2: audit row
        record = StatusUpdateRecord(
            id=str(uuid4()),
            complaint_id=complaint.id,
            status=status,
            assigned_to=worker_name,
            assigned_contact=form.worker_contact.strip(),
            note=form.note,
            created_at=datetime.utcnow(),
        )
        try:
            result.audit_record = self.store.insert_status_update(record)
        except RecordStoreError as e:
            logger.error(
                "Complaint %s updated but status update not recorded: %s", complaint.id, e
            )
            self.notifier.error("Error assigning worker")
            result.error = str(e)
            if self.retry_queue is not None:
                self.retry_queue.enqueue(record)
                result.queued_for_retry = True
            return result
        result.audited = True

        logger.info(
            "Assigned %s to complaint %s (%s)", worker_name, complaint.complaint_code, status
        )
        self.notifier.toast(
            "Worker Assigned Successfully",
            f"{worker_name} has been assigned to complaint {complaint.complaint_code}",
        )
        self.close()
        return result

    def retry_pending(self) -> List[StatusUpdateRecord]:
        """Re-attempt audit inserts queued after earlier step-2 failures."""
        if self.retry_queue is None:
            return []
        return self.retry_queue.drain(self.store)
