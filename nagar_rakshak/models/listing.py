"""Client-held browsing state: filters, pagination and list phase."""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from nagar_rakshak.models.complaint import Complaint

# Select-box value the admin UI uses for "no filter".
ALL_SENTINEL = "all"


class ListPhase(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class FilterState(BaseModel):
    """Optional equality filters. Unset means no predicate, never "match empty"."""

    status: Optional[str] = None
    issue_type: Optional[str] = None

    @field_validator("status", "issue_type", mode="before")
    @classmethod
    def _normalize_unset(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        if not value or value.lower() == ALL_SENTINEL:
            return None
        return value


class PageState(BaseModel):
    current_page: int = Field(default=1, ge=1)
    page_size: int = Field(default=5, ge=1)
    total_count: int = Field(default=0, ge=0)

    @property
    def range_from(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def range_to(self) -> int:
        """Inclusive upper row index of the current page."""
        return self.current_page * self.page_size - 1

    @property
    def has_previous(self) -> bool:
        return self.current_page != 1

    @property
    def has_next(self) -> bool:
        return self.current_page * self.page_size < self.total_count

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


class ComplaintPage(BaseModel):
    """One page of complaints plus the filter-consistent total."""

    complaints: List[Complaint]
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def from_state(cls, complaints: List[Complaint], page: PageState) -> "ComplaintPage":
        return cls(
            complaints=complaints,
            total_count=page.total_count,
            current_page=page.current_page,
            page_size=page.page_size,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_previous=page.has_previous,
        )
