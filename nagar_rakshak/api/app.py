"""
Nagar Rakshak API — FastAPI endpoints for the complaint back office.

Exposes:
- Complaint browsing (filtered, paginated, newest first)
- Dashboard stats
- Worker assignment with status-update audit trail
- Complaint map markers
- Credential SMS delivery
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from nagar_rakshak.assignment.workflow import (
    AssignmentValidationError,
    AssignmentWorkflow,
    AuditRetryQueue,
)
from nagar_rakshak.config.logging import setup_logging
from nagar_rakshak.config.settings import Settings, get_settings
from nagar_rakshak.listing.controller import fetch_page
from nagar_rakshak.map_view.markers import ComplaintMap
from nagar_rakshak.models.assignment import AssignmentForm
from nagar_rakshak.models.complaint import Complaint, ComplaintStatus
from nagar_rakshak.models.listing import FilterState, PageState
from nagar_rakshak.notification.gateway import NotificationGateway
from nagar_rakshak.notifier.toasts import Notifier
from nagar_rakshak.query.builder import QueryBuilder
from nagar_rakshak.record_store.changefeed import ChangeFeed
from nagar_rakshak.record_store.store import RecordStore, RecordStoreError
from nagar_rakshak.stats.aggregator import StatsAggregator

logger = logging.getLogger(__name__)


# --- Request/Response Models ---

class AssignRequest(BaseModel):
    status: str = ""
    worker_name: str = ""
    worker_contact: str = ""
    note: str = ""


class ComplaintIngestRequest(BaseModel):
    complaint_code: str
    issue_type: str
    description: str = ""
    city: str = ""
    state: str = ""
    gps_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    gps_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: str = ComplaintStatus.REGISTERED.value
    assigned_to: Optional[str] = None


# --- Application Factory ---

def create_app(
    store: Optional[RecordStore] = None,
    feed: Optional[ChangeFeed] = None,
    settings: Optional[Settings] = None,
    gateway: Optional[NotificationGateway] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Municipal complaint triage, assignment and notification",
        version=settings.APP_VERSION,
    )

    # Initialize components
    rs = store or RecordStore(db_path=settings.DATABASE_PATH, feed=feed or ChangeFeed())
    nt = notifier or Notifier()
    gw = gateway or NotificationGateway(config=settings.sms_provider_config())
    qb = QueryBuilder()
    stats = StatsAggregator(rs)
    complaint_map = ComplaintMap(rs, qb)
    retry_queue = AuditRetryQueue() if settings.AUDIT_RETRY_ENABLED else None

    # Store components on app state for access in endpoints
    app.state.settings = settings
    app.state.record_store = rs
    app.state.notifier = nt
    app.state.gateway = gw
    app.state.stats = stats
    app.state.complaint_map = complaint_map
    app.state.retry_queue = retry_queue

    def _workflow() -> AssignmentWorkflow:
        return AssignmentWorkflow(
            rs,
            notifier=nt,
            retry_queue=retry_queue,
            enforce_forward_order=settings.ENFORCE_FORWARD_STATUS,
        )

    def _get_or_404(complaint_id: str) -> Complaint:
        complaint = rs.get_complaint(complaint_id)
        if not complaint:
            raise HTTPException(404, "Complaint not found")
        return complaint

    @app.get("/health")
    def health():
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    # === COMPLAINTS ===

    @app.get("/complaints")
    def list_complaints(
        status: Optional[str] = None,
        issue_type: Optional[str] = None,
        page: int = 1,
    ):
        """One page of complaints, newest first, with the filtered total."""
        if page < 1:
            raise HTTPException(422, "page must be >= 1")
        filters = FilterState(status=status, issue_type=issue_type)
        page_state = PageState(current_page=page, page_size=settings.PAGE_SIZE)
        try:
            result = fetch_page(rs, qb, filters, page_state)
        except RecordStoreError as e:
            logger.error("Error fetching complaints: %s", e)
            raise HTTPException(502, "Error fetching complaints")
        return result.model_dump(mode="json")

    @app.get("/complaints/stats")
    def complaint_stats():
        """Pending / in-progress / resolved / total counters."""
        return stats.refresh().model_dump()

    @app.post("/complaints/ingest")
    def ingest_complaint(req: ComplaintIngestRequest):
        """Manual record insert (for testing and seeding)."""
        complaint = Complaint(
            id=str(uuid4()),
            created_at=datetime.utcnow(),
            **req.model_dump(),
        )
        try:
            rs.insert_complaint(complaint)
        except RecordStoreError as e:
            raise HTTPException(409, str(e))
        return {"status": "ingested", "complaint": complaint.model_dump(mode="json")}

    @app.get("/complaints/{complaint_id}")
    def get_complaint(complaint_id: str):
        return _get_or_404(complaint_id).model_dump(mode="json")

    @app.get("/complaints/{complaint_id}/updates")
    def get_status_updates(complaint_id: str):
        """Audit trail for a complaint, oldest first."""
        _get_or_404(complaint_id)
        return [r.model_dump(mode="json") for r in rs.get_status_updates(complaint_id)]

    # === ASSIGNMENT ===

    @app.post("/complaints/{complaint_id}/assign")
    def assign_worker(complaint_id: str, req: AssignRequest):
        """Update status and assignee, then append the audit row."""
        complaint = _get_or_404(complaint_id)
        workflow = _workflow()
        try:
            workflow.open(complaint)
        except AssignmentValidationError as e:
            raise HTTPException(409, str(e))

        workflow.form = AssignmentForm(**req.model_dump())
        try:
            workflow.validate()
        except AssignmentValidationError as e:
            raise HTTPException(422, str(e))

        result = workflow.submit()
        if result is None:
            raise HTTPException(422, "Invalid assignment")
        if not result.success:
            raise HTTPException(502, detail={
                "error": result.error,
                "complaint_updated": result.complaint_updated,
                "audited": result.audited,
                "queued_for_retry": result.queued_for_retry,
            })
        return result.audit_record.model_dump(mode="json")

    @app.post("/assignments/retry-audits")
    def retry_audits():
        """Re-attempt audit rows left unwritten by earlier partial assignments."""
        if retry_queue is None:
            raise HTTPException(404, "Audit retry is not enabled")
        written = _workflow().retry_pending()
        return {"written": len(written), "pending": len(retry_queue)}

    # === MAP ===

    @app.get("/map/markers")
    def map_markers():
        return complaint_map.render().model_dump(mode="json")

    # === NOTIFICATIONS ===

    @app.options("/notifications/send-credentials")
    def credentials_preflight():
        response = gw.handle("OPTIONS", None)
        return PlainTextResponse(response.body, status_code=response.status_code,
                                 headers=response.headers)

    @app.post("/notifications/send-credentials")
    async def send_credentials(request: Request):
        """Validate the phone number and deliver login credentials by SMS."""
        body = await request.body()
        response = await run_in_threadpool(gw.handle, "POST", body)
        return JSONResponse(response.body, status_code=response.status_code,
                            headers=response.headers)

    return app


# Default application instance
setup_logging()
app = create_app()
