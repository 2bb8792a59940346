"""
Background export job models.

An ExportJob is created when the host submits an export to the
ExportService and is updated only by that job's thread (through the
lock-protected ExportJobStore). The main thread reads it to report status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .render_options import ExportResult


class ExportJobStatus(Enum):
    """
    Lifecycle:
        PENDING -> RUNNING -> (COMPLETED | FAILED | CANCELLED)
    """

    PENDING = "pending"
    """Accepted, thread not started yet."""

    RUNNING = "running"
    """Renderer is working."""

    COMPLETED = "completed"
    """Bytes are available in ``result``."""

    FAILED = "failed"
    """Export failed; ``result.error`` has the reason."""

    CANCELLED = "cancelled"
    """Cancelled by the host before it finished."""

    @property
    def is_finished(self) -> bool:
        return self in (ExportJobStatus.COMPLETED, ExportJobStatus.FAILED, ExportJobStatus.CANCELLED)


@dataclass
class ExportJob:
    job_id: str
    """Unique job identifier (UUID)."""

    product_id: str
    export_format: str

    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: ExportJobStatus = ExportJobStatus.PENDING

    result: Optional[ExportResult] = None
    """Set once the job is finished."""

    finished_at: Optional[datetime] = None

    def finish(self, status: ExportJobStatus, result: ExportResult) -> None:
        self.status = status
        self.result = result
        self.finished_at = datetime.now(timezone.utc)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.submitted_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Status payload for the API (never includes the file bytes)."""
        payload: Dict[str, Any] = {
            "jobId": self.job_id,
            "productId": self.product_id,
            "format": self.export_format,
            "status": self.status.value,
            "submittedAt": self.submitted_at.isoformat(),
        }
        if self.finished_at is not None:
            payload["finishedAt"] = self.finished_at.isoformat()
        if self.result is not None:
            payload["result"] = self.result.to_dict(include_data=False)
        return payload
