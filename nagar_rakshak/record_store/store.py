"""
Record Store — source of truth for complaints and their status-update trail.

Behavioral Contract:
- Serves filtered, range-restricted, ordered reads with an exact match count
  computed under the same predicates as the returned rows.
- Complaint rows are updated in place; status-update rows are append-only.
- Every committed write is published on the change feed as a ChangeEvent.
- Row-level consistency is the store's concern; callers hold no locks.
- Timestamps are stored as naive UTC so text order is time order. Naive
  inputs are taken to be UTC already.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from nagar_rakshak.models.complaint import Complaint, StatusUpdateRecord
from nagar_rakshak.models.query import ComplaintQuery, PredicateOperator, QueryResult
from nagar_rakshak.models.realtime import ChangeEvent, ChangeOperation
from nagar_rakshak.record_store.changefeed import ChangeFeed

logger = logging.getLogger(__name__)

COMPLAINTS_TABLE = "complaints"
STATUS_UPDATES_TABLE = "complaint_status_updates"

COMPLAINT_COLUMNS = (
    "id",
    "complaint_code",
    "issue_type",
    "description",
    "city",
    "state",
    "gps_latitude",
    "gps_longitude",
    "status",
    "assigned_to",
    "created_at",
)

# The only complaint fields the back office may change.
UPDATABLE_COLUMNS = ("status", "assigned_to")


class RecordStoreError(Exception):
    """Raised when a read or write against the store fails."""
    pass


class RecordNotFoundError(RecordStoreError):
    """Raised when a write targets a row that does not exist."""
    pass


def _timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="microseconds")


class RecordStore:
    """
    Relational complaint store.
    Prototype: SQLite. Production: a hosted PostgreSQL with its own change feed.
    """

    def __init__(self, db_path: str = ":memory:", feed: Optional[ChangeFeed] = None):
        self.db_path = db_path
        self.feed = feed or ChangeFeed()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the complaint and status-update tables if they don't exist."""
        self._conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {COMPLAINTS_TABLE} (
                id TEXT PRIMARY KEY,
                complaint_code TEXT NOT NULL UNIQUE,
                issue_type TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                city TEXT NOT NULL DEFAULT '',
                state TEXT NOT NULL DEFAULT '',
                gps_latitude REAL,
                gps_longitude REAL,
                status TEXT NOT NULL DEFAULT 'Registered',
                assigned_to TEXT,
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {STATUS_UPDATES_TABLE} (
                id TEXT PRIMARY KEY,
                complaint_id TEXT NOT NULL,
                status TEXT NOT NULL,
                assigned_to TEXT NOT NULL,
                assigned_contact TEXT NOT NULL,
                note TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_complaints_created_at
            ON {COMPLAINTS_TABLE}(created_at)
        """)
        self._conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_status_updates_complaint_id
            ON {STATUS_UPDATES_TABLE}(complaint_id)
        """)
        self._conn.commit()

    def _publish(self, table: str, operation: ChangeOperation, record_id: str) -> None:
        self.feed.publish(ChangeEvent(
            table=table,
            operation=operation,
            record_id=record_id,
            occurred_at=datetime.utcnow(),
        ))

    # === READS ===

    def select_complaints(self, query: ComplaintQuery) -> QueryResult:
        """
        Run a read query. The count (when requested) uses the same WHERE
        clause as the rows, ignoring only the range.
        """
        columns = self._resolve_columns(query.columns)
        where, params = self._build_where(query)

        sql = f"SELECT {columns} FROM {COMPLAINTS_TABLE}{where}"
        if query.order_by:
            self._check_column(query.order_by)
            direction = "ASC" if query.ascending else "DESC"
            sql += f" ORDER BY {query.order_by} {direction}, rowid {direction}"
        row_params = list(params)
        if query.range_from is not None and query.range_to is not None:
            limit = max(0, query.range_to - query.range_from + 1)
            sql += " LIMIT ? OFFSET ?"
            row_params.extend([limit, query.range_from])

        try:
            rows = self._conn.execute(sql, row_params).fetchall()
            count = None
            if query.count_exact:
                count = self._conn.execute(
                    f"SELECT COUNT(*) AS cnt FROM {COMPLAINTS_TABLE}{where}", params
                ).fetchone()["cnt"]
        except sqlite3.Error as e:
            logger.error("Complaint query failed: %s", e, exc_info=True)
            raise RecordStoreError(f"Complaint query failed: {e}") from e

        return QueryResult(rows=[dict(r) for r in rows], count=count)

    def _resolve_columns(self, columns: List[str]) -> str:
        if not columns or columns == ["*"]:
            return ", ".join(COMPLAINT_COLUMNS)
        for column in columns:
            self._check_column(column)
        return ", ".join(columns)

    def _check_column(self, column: str) -> None:
        if column not in COMPLAINT_COLUMNS:
            raise RecordStoreError(f"Unknown complaint column: {column}")

    def _build_where(self, query: ComplaintQuery) -> Tuple[str, list]:
        clauses = []
        params = []
        for predicate in query.predicates:
            self._check_column(predicate.column)
            if predicate.operator == PredicateOperator.EQ:
                clauses.append(f"{predicate.column} = ?")
                params.append(predicate.value)
            elif predicate.operator == PredicateOperator.NOT_NULL:
                clauses.append(f"{predicate.column} IS NOT NULL")
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def get_complaint(self, complaint_id: str) -> Optional[Complaint]:
        row = self._conn.execute(
            f"SELECT * FROM {COMPLAINTS_TABLE} WHERE id = ?", (complaint_id,)
        ).fetchone()
        return Complaint.model_validate(dict(row)) if row else None

    def select_statuses(self) -> List[Optional[str]]:
        """The status column of every complaint, unfiltered and unpaginated."""
        try:
            rows = self._conn.execute(f"SELECT status FROM {COMPLAINTS_TABLE}").fetchall()
        except sqlite3.Error as e:
            logger.error("Status scan failed: %s", e, exc_info=True)
            raise RecordStoreError(f"Status scan failed: {e}") from e
        return [r["status"] for r in rows]

    def get_status_updates(self, complaint_id: str) -> List[StatusUpdateRecord]:
        """Audit trail for a complaint, oldest first."""
        rows = self._conn.execute(
            f"SELECT * FROM {STATUS_UPDATES_TABLE} WHERE complaint_id = ? "
            "ORDER BY created_at, rowid",
            (complaint_id,),
        ).fetchall()
        return [StatusUpdateRecord.model_validate(dict(r)) for r in rows]

    def count(self, table: str = COMPLAINTS_TABLE) -> int:
        if table not in (COMPLAINTS_TABLE, STATUS_UPDATES_TABLE):
            raise RecordStoreError(f"Unknown table: {table}")
        row = self._conn.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
        return row["cnt"]

    # === WRITES ===

    def insert_complaint(self, complaint: Complaint) -> Complaint:
        """Insert a complaint filed elsewhere (seeding, manual ingest)."""
        try:
            self._conn.execute(
                f"""
                INSERT INTO {COMPLAINTS_TABLE} ({", ".join(COMPLAINT_COLUMNS)})
                VALUES ({", ".join("?" for _ in COMPLAINT_COLUMNS)})
                """,
                (
                    complaint.id,
                    complaint.complaint_code,
                    complaint.issue_type,
                    complaint.description,
                    complaint.city,
                    complaint.state,
                    complaint.gps_latitude,
                    complaint.gps_longitude,
                    complaint.status,
                    complaint.assigned_to,
                    _timestamp(complaint.created_at),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            logger.error("Complaint insert failed: %s", e)
            raise RecordStoreError(f"Complaint insert failed: {e}") from e

        self._publish(COMPLAINTS_TABLE, ChangeOperation.INSERT, complaint.id)
        return complaint

    def update_complaint(self, complaint_id: str, updates: dict) -> Complaint:
        """Apply field updates to one complaint and return the new row."""
        unknown = set(updates) - set(UPDATABLE_COLUMNS)
        if unknown:
            raise RecordStoreError(f"Fields not updatable: {', '.join(sorted(unknown))}")
        if not updates:
            raise RecordStoreError("No fields to update")

        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            cursor = self._conn.execute(
                f"UPDATE {COMPLAINTS_TABLE} SET {assignments} WHERE id = ?",
                (*updates.values(), complaint_id),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            logger.error("Complaint update failed for %s: %s", complaint_id, e)
            raise RecordStoreError(f"Complaint update failed: {e}") from e

        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Complaint {complaint_id} not found")

        self._publish(COMPLAINTS_TABLE, ChangeOperation.UPDATE, complaint_id)
        return self.get_complaint(complaint_id)

    def insert_status_update(self, record: StatusUpdateRecord) -> StatusUpdateRecord:
        """Append an audit row. There is no update or delete counterpart."""
        try:
            self._conn.execute(
                f"""
                INSERT INTO {STATUS_UPDATES_TABLE} (
                    id, complaint_id, status, assigned_to,
                    assigned_contact, note, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.complaint_id,
                    record.status,
                    record.assigned_to,
                    record.assigned_contact,
                    record.note,
                    _timestamp(record.created_at),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            logger.error("Status update insert failed for %s: %s", record.complaint_id, e)
            raise RecordStoreError(f"Status update insert failed: {e}") from e

        self._publish(STATUS_UPDATES_TABLE, ChangeOperation.INSERT, record.id)
        return record

    def delete_complaint(self, complaint_id: str) -> bool:
        """
        Remove a complaint. The back office never calls this; it exists for
        upstream housekeeping whose deletes observers must still see.
        """
        try:
            cursor = self._conn.execute(
                f"DELETE FROM {COMPLAINTS_TABLE} WHERE id = ?", (complaint_id,)
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise RecordStoreError(f"Complaint delete failed: {e}") from e

        if cursor.rowcount == 0:
            return False
        self._publish(COMPLAINTS_TABLE, ChangeOperation.DELETE, complaint_id)
        return True

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
