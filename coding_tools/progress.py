"""
Progress reporting: optional incremental notifications emitted by the
search, diff and batch-edit tools through a caller-supplied callback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

STATUS_IN_PROGRESS = "in-progress"
STATUS_DONE = "done"


@dataclass
class ProgressEvent:
    """A single progress notification."""
    stage: str                  # tool id, e.g. "coding:multiStringEdit"
    status: str                 # STATUS_IN_PROGRESS | STATUS_DONE
    message: str
    current: Optional[int] = None
    total: Optional[int] = None

    def to_dict(self) -> dict:
        data = {"stage": self.stage, "status": self.status, "message": self.message}
        if self.current is not None:
            data["current"] = self.current
        if self.total is not None:
            data["total"] = self.total
        return data


ProgressCallback = Callable[[ProgressEvent], None]


def emit(
    callback: ProgressCallback | None,
    stage: str,
    message: str,
    *,
    status: str = STATUS_IN_PROGRESS,
    current: int | None = None,
    total: int | None = None,
) -> None:
    """Send a progress event to *callback*, if one is attached.

    A callback that raises is logged and ignored so that a broken sink can
    never change the outcome of the operation being reported on.
    """
    if callback is None:
        return
    event = ProgressEvent(
        stage=stage, status=status, message=message,
        current=current, total=total,
    )
    try:
        callback(event)
    except Exception as exc:
        logger.warning("[Progress] Callback failed for %s: %s", stage, exc)
