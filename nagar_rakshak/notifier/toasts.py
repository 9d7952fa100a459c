"""Toast notifier — transient messages shown to the admin."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from nagar_rakshak.models.notice import Toast, ToastVariant

logger = logging.getLogger(__name__)


class Notifier:
    """
    Collects toasts for the UI layer. Keeps the most recent ``max_toasts``;
    an optional sink receives each toast as it is raised.
    """

    def __init__(self, sink: Optional[Callable[[Toast], None]] = None, max_toasts: int = 50):
        if max_toasts < 1:
            raise ValueError("max_toasts must be at least 1")
        self._sink = sink
        self._max_toasts = max_toasts
        self._toasts: List[Toast] = []

    def toast(
        self,
        title: str,
        description: Optional[str] = None,
        variant: ToastVariant = ToastVariant.DEFAULT,
    ) -> Toast:
        toast = Toast(
            title=title,
            description=description,
            variant=variant,
            created_at=datetime.utcnow(),
        )
        self._toasts.append(toast)
        del self._toasts[:-self._max_toasts]
        if self._sink:
            self._sink(toast)
        return toast

    def error(self, title: str, description: Optional[str] = None) -> Toast:
        return self.toast(title, description, ToastVariant.DESTRUCTIVE)

    @property
    def toasts(self) -> List[Toast]:
        return list(self._toasts)

    @property
    def latest(self) -> Optional[Toast]:
        return self._toasts[-1] if self._toasts else None

    def clear(self) -> None:
        self._toasts.clear()
