"""
Tests for the background export service.

BlockingLoader holds a job inside its image load until the test releases
it, which makes cancellation and timeout timing deterministic.
"""

import threading
from datetime import timedelta

import pytest

from core.exceptions import ImageLoadError
from models.elements import ImageElement, ShapeElement
from models.export_job import ExportJob, ExportJobStatus
from models.render_options import ExportFormat, ExportResult, RenderOptions
from modules.image_loader import ImageLoader
from services.export_service import ExportJobStore, ExportService


class BlockingLoader(ImageLoader):
    def __init__(self):
        super().__init__(allow_remote=False)
        self.started = threading.Event()
        self.release = threading.Event()

    def load_sync(self, element):
        self.started.set()
        self.release.wait(5)
        raise ImageLoadError(element.src, "blocked", element.id)


@pytest.fixture
def blocked_design():
    return [
        ShapeElement(id="bg", width=100, height=100, fill="#000000"),
        ImageElement(id="img", width=10, height=10, src="data:image/png;base64,AAAA"),
    ]


@pytest.fixture
def service():
    svc = ExportService(job_timeout_seconds=30)
    yield svc
    svc.shutdown(timeout_per_thread=2)


class TestExportJobStore:
    def test_add_get_pop(self):
        store = ExportJobStore()
        store.add(ExportJob(job_id="j1", product_id="p", export_format="pdf"))

        assert store.get("j1").status is ExportJobStatus.PENDING
        assert store.pop("j1").job_id == "j1"
        assert store.get("j1") is None

    def test_status_is_not_changed_after_finish(self):
        store = ExportJobStore()
        store.add(ExportJob(job_id="j1", product_id="p", export_format="pdf"))
        store.finish("j1", ExportJobStatus.FAILED, ExportResult.failed("x"))
        store.set_status("j1", ExportJobStatus.RUNNING)
        assert store.get("j1").status is ExportJobStatus.FAILED

    def test_clear(self):
        store = ExportJobStore()
        store.add(ExportJob(job_id="a", product_id="p", export_format="pdf"))
        store.add(ExportJob(job_id="b", product_id="p", export_format="pdf"))
        assert store.clear() == 2
        assert store.list_jobs() == []

    def test_purge_finished_keeps_running_and_recent_jobs(self):
        store = ExportJobStore()
        for job_id in ("old", "recent", "running"):
            store.add(ExportJob(job_id=job_id, product_id="p", export_format="pdf"))
        store.finish("old", ExportJobStatus.FAILED, ExportResult.failed("x"))
        store.finish("recent", ExportJobStatus.COMPLETED, ExportResult.failed("y"))
        store.get("old").finished_at -= timedelta(hours=1)

        assert store.purge_finished(max_age_seconds=600) == 1
        assert sorted(job.job_id for job in store.list_jobs()) == ["recent", "running"]


class TestExportService:
    """Submission, completion, cancellation and timeout."""

    def test_submit_and_complete(self, service, business_card, sample_elements):
        job_id = service.submit(sample_elements, business_card, RenderOptions(format=ExportFormat.SVG))
        job = service.wait(job_id, timeout=30)

        assert job.status is ExportJobStatus.COMPLETED
        assert job.result.success
        assert job.result.data.startswith(b"<?xml")
        assert job.finished_at is not None
        assert not service.is_job_pending(job_id)

    def test_custom_job_id(self, service, business_card):
        job_id = service.submit([], business_card, RenderOptions(format=ExportFormat.SVG), job_id="my-job")
        assert job_id == "my-job"
        assert service.wait(job_id, timeout=30).status is ExportJobStatus.COMPLETED

    def test_failed_export_is_failed_job(self, service, business_card):
        job_id = service.submit([], business_card, RenderOptions(format="tiff"))
        job = service.wait(job_id, timeout=30)
        assert job.status is ExportJobStatus.FAILED
        assert "Unsupported export format" in job.result.error

    def test_cancel_running_job(self, business_card, blocked_design):
        loader = BlockingLoader()
        service = ExportService(image_loader=loader, job_timeout_seconds=30)
        job_id = service.submit(blocked_design, business_card, RenderOptions(format=ExportFormat.PNG))

        assert loader.started.wait(5)
        assert service.cancel(job_id)
        loader.release.set()
        job = service.wait(job_id, timeout=30)

        assert job.status is ExportJobStatus.CANCELLED
        assert not job.result.success
        assert "cancelled" in job.result.error
        assert not service.cancel(job_id)

    def test_cancel_unknown_job(self, service):
        assert not service.cancel("nope")

    def test_timeout_fails_job(self, business_card, blocked_design):
        loader = BlockingLoader()
        service = ExportService(image_loader=loader, job_timeout_seconds=0.2)
        job_id = service.submit(blocked_design, business_card, RenderOptions(format=ExportFormat.PNG))

        assert loader.started.wait(5)
        threading.Timer(0.6, loader.release.set).start()
        job = service.wait(job_id, timeout=30)

        assert job.status is ExportJobStatus.FAILED
        assert job.result.error == "Export timed out after 0.2s"

    def test_submit_copies_elements(self, business_card, blocked_design):
        loader = BlockingLoader()
        service = ExportService(image_loader=loader, job_timeout_seconds=30)
        job_id = service.submit(blocked_design, business_card, RenderOptions(format=ExportFormat.PNG))

        blocked_design.clear()
        loader.release.set()
        job = service.wait(job_id, timeout=30)

        assert job.status is ExportJobStatus.COMPLETED
        assert job.result.warnings == ["Image img skipped: blocked"]

    def test_pop_job_consumes_it(self, service, business_card):
        job_id = service.submit([], business_card, RenderOptions(format=ExportFormat.SVG))
        service.wait(job_id, timeout=30)
        assert service.pop_job(job_id) is not None
        assert service.get_job(job_id) is None

    def test_to_dict_has_no_file_bytes(self, service, business_card):
        job_id = service.submit([], business_card, RenderOptions(format=ExportFormat.SVG))
        data = service.wait(job_id, timeout=30).to_dict()
        assert data["jobId"] == job_id
        assert data["status"] == "completed"
        assert "data" not in data["result"]

    def test_uncollected_jobs_expire_on_next_submit(self, business_card):
        service = ExportService(job_timeout_seconds=30, job_retention_seconds=0)
        first = service.submit([], business_card, RenderOptions(format="tiff"))
        assert service.wait(first, timeout=30).status is ExportJobStatus.FAILED

        second = service.submit([], business_card, RenderOptions(format=ExportFormat.SVG))
        service.wait(second, timeout=30)

        assert service.get_job(first) is None
        assert service.get_job(second) is not None
        service.shutdown(timeout_per_thread=2)
