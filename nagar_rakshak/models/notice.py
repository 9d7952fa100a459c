"""Transient toast notifications surfaced to the admin."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ToastVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Toast(BaseModel):
    title: str
    description: Optional[str] = None
    variant: ToastVariant = ToastVariant.DEFAULT
    created_at: datetime
