"""Coarse complaint counters for the dashboard header."""

from pydantic import BaseModel, Field


class ComplaintStats(BaseModel):
    pending: int = Field(default=0, ge=0)       # Registered
    in_progress: int = Field(default=0, ge=0)   # Assigned or In-Progress
    resolved: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)         # Every row, known status or not
