"""
Report Task Service - background PDF generation with status polling.

A report record is created in the request that asks for it (status
``pending``). Rendering then runs in a worker thread after the response
has gone out; callers poll the record until it is ``completed`` or
``failed``. There are no retries: a failed record stays failed.
"""

import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from strata_reports.exceptions import AppError, NotFoundError
from strata_reports.services.brand_service import Theme
from strata_reports.services.report_generator_service import build_filename, generate_pdf
from strata_reports.services.report_generator_service.models import ReportDocument

logger = logging.getLogger(__name__)


class ReportStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ReportRecord:
    id: str
    document: ReportDocument
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    pdf_content: Optional[bytes] = field(default=None, repr=False)

    @property
    def filename(self) -> str:
        return build_filename(self.document.title)

    def to_dict(self) -> dict:
        report_type = getattr(self.document.report_type, "value", self.document.report_type)
        return {
            "id": self.id,
            "title": self.document.title,
            "report_type": report_type,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
            "has_pdf": self.pdf_content is not None,
            "filename": self.filename,
        }


class ReportRecordStore:
    """In-memory report records, safe to update from worker threads."""

    def __init__(self):
        self._records: Dict[str, ReportRecord] = {}
        self._lock = threading.Lock()

    def create(self, document: ReportDocument) -> ReportRecord:
        record = ReportRecord(id=uuid.uuid4().hex, document=document)
        with self._lock:
            self._records[record.id] = record
        return record

    def get(self, report_id: str) -> ReportRecord:
        with self._lock:
            record = self._records.get(report_id)
        if record is None:
            raise NotFoundError("Report not found")
        return record

    def mark_completed(self, report_id: str, pdf_content: bytes) -> ReportRecord:
        record = self.get(report_id)
        with self._lock:
            record.pdf_content = pdf_content
            record.status = ReportStatus.COMPLETED
            record.completed_at = datetime.now(timezone.utc)
            record.error = None
        return record

    def mark_failed(self, report_id: str, error: str) -> ReportRecord:
        record = self.get(report_id)
        with self._lock:
            record.pdf_content = None
            record.status = ReportStatus.FAILED
            record.completed_at = datetime.now(timezone.utc)
            record.error = error
        return record

    def clear(self):
        with self._lock:
            self._records.clear()


# Process-wide store used by the HTTP layer
report_store = ReportRecordStore()


async def generate_report_in_background(
    report_id: str,
    store: Optional[ReportRecordStore] = None,
    theme: Optional[Theme] = None,
) -> ReportRecord:
    """
    Render a pending record's document off the event loop and record the
    outcome. Any failure marks the record failed; nothing is re-raised.
    """
    store = store or report_store
    record = store.get(report_id)
    logger.info("Background generation started for report %s", report_id)
    try:
        pdf = await asyncio.to_thread(generate_pdf, record.document, theme)
    except AppError as e:
        logger.error("Background generation failed for report %s: %s", report_id, e.message)
        return store.mark_failed(report_id, e.message)
    except Exception as e:
        logger.error("Unexpected error generating report %s: %s", report_id, e, exc_info=True)
        return store.mark_failed(report_id, "Report rendering failed")

    logger.info("Background generation finished for report %s (%d bytes)", report_id, len(pdf))
    return store.mark_completed(report_id, pdf)
