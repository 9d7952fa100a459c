"""Row-level change notifications published by the record store."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ChangeOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    table: str
    operation: ChangeOperation
    record_id: Optional[str] = None
    occurred_at: datetime
