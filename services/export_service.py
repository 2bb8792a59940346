"""
Background export service with thread-per-job architecture.

Large exports (posters at 600 DPI, banners) take long enough that the HTTP
layer should not block on them. Each submitted export gets its own thread,
and that thread runs its own asyncio event loop for the image loads.

Thread Safety:
    - Element snapshots, PrintProduct and RenderOptions are frozen, so
      they are handed to the job thread as-is
    - ExportJobStore is the only channel back to the main thread and
      guards every access with a threading.Lock
    - Each job owns a threading.Event; setting it cancels the export
      before the next element is drawn

Usage:
    # At app startup
    export_service = ExportService(image_loader)

    # Request thread
    job_id = export_service.submit(elements, product, options)

    # Polling
    job = export_service.get_job(job_id)
    if job and job.status is ExportJobStatus.COMPLETED:
        data = job.result.data

    # Cancellation
    export_service.cancel(job_id)

    # At app shutdown
    export_service.shutdown()
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from config import Config
from logging_config import get_job_logger, get_logger, set_thread_name
from models.elements import DesignElement
from models.export_job import ExportJob, ExportJobStatus
from models.product import PrintProduct
from models.render_options import ExportResult, RenderOptions
from modules.exporter import export_design
from modules.fonts import TextFonts
from modules.image_loader import ImageLoader

logger = get_logger(__name__)


class ExportJobStore:
    """
    Thread-safe storage for export jobs.

    Job threads update their own entry; the main thread reads entries for
    status and removes them once the file has been handed out.
    """

    def __init__(self):
        self._jobs: Dict[str, ExportJob] = {}
        self._lock = threading.Lock()

    def add(self, job: ExportJob) -> None:
        with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> Optional[ExportJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def pop(self, job_id: str) -> Optional[ExportJob]:
        """Remove and return a job (consume-once download)."""
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job:
                logger.debug(f"Removed job {job_id[:8]} from store")
            return job

    def set_status(self, job_id: str, status: ExportJobStatus) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None and not job.status.is_finished:
                job.status = status

    def finish(self, job_id: str, status: ExportJobStatus, result: ExportResult) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                job.finish(status, result)
                logger.debug(f"Stored result for job {job_id[:8]} ({status.value})")

    def purge_finished(self, max_age_seconds: float) -> int:
        """
        Remove finished jobs older than ``max_age_seconds``.

        Returns:
            Number of jobs removed
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.finished_at is not None and job.finished_at <= cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]
        if expired:
            logger.info(f"Purged {len(expired)} finished export jobs")
        return len(expired)

    def list_jobs(self) -> List[ExportJob]:
        with self._lock:
            return list(self._jobs.values())

    def clear(self) -> int:
        """
        Remove all stored jobs.

        Returns:
            Number of jobs removed
        """
        with self._lock:
            count = len(self._jobs)
            self._jobs.clear()
            logger.info(f"Cleared {count} export jobs from store")
            return count


class ExportService:
    """
    Runs exports in background threads.

    Attributes:
        store: ExportJobStore holding every known job
    """

    def __init__(
        self,
        image_loader: Optional[ImageLoader] = None,
        job_timeout_seconds: float = Config.EXPORT_JOB_TIMEOUT_SECONDS,
        fonts: Optional[TextFonts] = None,
        job_retention_seconds: float = Config.EXPORT_JOB_RETENTION_SECONDS,
    ):
        self._image_loader = image_loader or ImageLoader()
        self._fonts = fonts
        self._job_timeout = job_timeout_seconds
        self._job_retention = job_retention_seconds
        self._store = ExportJobStore()

        # Active threads and their cancel events
        self._active_threads: Dict[str, threading.Thread] = {}
        self._cancel_events: Dict[str, threading.Event] = {}
        self._threads_lock = threading.Lock()

        logger.info(f"ExportService initialized (job timeout {job_timeout_seconds}s)")

    @property
    def store(self) -> ExportJobStore:
        return self._store

    def submit(
        self,
        elements: Iterable[DesignElement],
        product: PrintProduct,
        options: RenderOptions,
        job_id: Optional[str] = None,
    ) -> str:
        """
        Start an export in a new thread and return its job id immediately.

        The element list is copied here, so later edits by the caller do not
        reach the job.
        """
        # Jobs nobody collected (no download, no final status read) expire here
        self._store.purge_finished(self._job_retention)

        if job_id is None:
            job_id = str(uuid.uuid4())
        snapshot = tuple(elements)

        export_format = getattr(options.format, "value", str(options.format))
        job = ExportJob(job_id=job_id, product_id=product.id, export_format=export_format)
        self._store.add(job)

        cancel_event = threading.Event()
        thread = threading.Thread(
            target=self._job_thread_main,
            args=(job_id, snapshot, product, options, cancel_event),
            name=f"Export-{job_id[:8]}",
            daemon=True,
        )

        with self._threads_lock:
            self._active_threads[job_id] = thread
            self._cancel_events[job_id] = cancel_event

        logger.info(f"Submitting export {job_id[:8]}: {len(snapshot)} elements, '{product.id}', {job.export_format}")
        thread.start()
        return job_id

    def get_job(self, job_id: str) -> Optional[ExportJob]:
        return self._store.get(job_id)

    def pop_job(self, job_id: str) -> Optional[ExportJob]:
        return self._store.pop(job_id)

    def is_job_pending(self, job_id: str) -> bool:
        with self._threads_lock:
            thread = self._active_threads.get(job_id)
            return thread is not None and thread.is_alive()

    def cancel(self, job_id: str) -> bool:
        """
        Request cancellation of a running job.

        Returns:
            True if the job was still running and has been signalled
        """
        with self._threads_lock:
            event = self._cancel_events.get(job_id)
        if event is None:
            return False
        event.set()
        logger.info(f"Cancellation requested for export {job_id[:8]}")
        return True

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Optional[ExportJob]:
        """Block until the job's thread exits (tests and CLI use)."""
        with self._threads_lock:
            thread = self._active_threads.get(job_id)
        if thread is not None:
            thread.join(timeout=timeout)
        return self._store.get(job_id)

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """
        Cancel and join all active export threads.

        Args:
            timeout_per_thread: Max seconds to wait per thread
        """
        with self._threads_lock:
            active = list(self._active_threads.items())
            events = list(self._cancel_events.values())

        if not active:
            logger.info("No active export threads to wait for")
            return

        logger.info(f"Cancelling {len(active)} export threads...")
        for event in events:
            event.set()

        for job_id, thread in active:
            if thread.is_alive():
                thread.join(timeout=timeout_per_thread)
                if thread.is_alive():
                    logger.warning(f"Export thread {job_id[:8]} did not complete in time")

        logger.info("Export service shutdown complete")

    def _job_thread_main(
        self,
        job_id: str,
        elements,
        product: PrintProduct,
        options: RenderOptions,
        cancel_event: threading.Event,
    ) -> None:
        set_thread_name(f"Export-{job_id[:8]}")
        job_logger = get_job_logger(job_id)
        job_logger.info(f"Export thread starting for '{product.id}'")

        # Drawing is synchronous, so the timeout works through the cancel event
        timed_out = threading.Event()

        def on_timeout():
            timed_out.set()
            cancel_event.set()

        timer = threading.Timer(self._job_timeout, on_timeout)
        timer.daemon = True
        timer.start()

        self._store.set_status(job_id, ExportJobStatus.RUNNING)
        try:
            result = asyncio.run(
                export_design(
                    elements, product, options, cancel_event, image_loader=self._image_loader, fonts=self._fonts
                )
            )
            if result.success:
                status = ExportJobStatus.COMPLETED
            elif timed_out.is_set():
                status = ExportJobStatus.FAILED
                result = ExportResult.failed(
                    f"Export timed out after {self._job_timeout:g}s", result.filename
                )
            elif cancel_event.is_set():
                status = ExportJobStatus.CANCELLED
            else:
                status = ExportJobStatus.FAILED
        except Exception as e:
            job_logger.error(f"Export thread failed: {e}", exc_info=True)
            status = ExportJobStatus.FAILED
            result = ExportResult.failed(f"Export failed: {e}")
        finally:
            timer.cancel()

        self._store.finish(job_id, status, result)
        with self._threads_lock:
            self._active_threads.pop(job_id, None)
            self._cancel_events.pop(job_id, None)

        job_logger.info(f"Export thread exiting: {status.value}")
