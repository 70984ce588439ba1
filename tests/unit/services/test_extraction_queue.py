"""Unit tests for the background extraction queue."""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from visa_assistant.core.config import QueueSettings
from visa_assistant.core.exceptions import UpstreamServiceError
from visa_assistant.database.models import Application, Document
from visa_assistant.services.queue.extraction_queue import ExtractionQueue, ExtractionTask


def _task(document_type: str = "bank_statement") -> ExtractionTask:
    return ExtractionTask(
        document_id=uuid4(),
        application_id=uuid4(),
        file_url="https://files.example.com/statement.pdf",
        document_type=document_type,
    )


@pytest.fixture
def repositories():
    app_repo = MagicMock()
    app_repo.get_for_update = AsyncMock()
    app_repo.update_form_data = AsyncMock()
    doc_repo = MagicMock()
    doc_repo.update_status = AsyncMock(return_value=True)
    doc_repo.store_extraction = AsyncMock()
    doc_repo.list_by_application = AsyncMock(return_value=[])
    return app_repo, doc_repo


@pytest.fixture
def session_factory():
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=MagicMock())
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


@pytest.fixture
def client():
    ocr = MagicMock()
    ocr.extract = AsyncMock(return_value={"closingBalance": "2,500.00"})
    return ocr


@pytest.fixture
def queue(session_factory, client, repositories):
    return ExtractionQueue(
        session_factory,
        client=client,
        queue_settings=QueueSettings(EXTRACTION_WORKERS=1, EXTRACTION_QUEUE_MAX_SIZE=2),
        repositories=lambda session: repositories,
    )


class TestSubmit:

    def test_full_queue_rejects_task(self, queue):
        assert queue.submit(_task()) is True
        assert queue.submit(_task()) is True
        assert queue.submit(_task()) is False
        assert queue.queue.qsize() == 2


class TestProcess:

    @pytest.mark.asyncio
    async def test_success_stores_fields_and_remerges(self, queue, client, repositories):
        app_repo, doc_repo = repositories
        task = _task()
        application = Application(id=task.application_id, user_id="user-123", form_data={})
        app_repo.get_for_update.return_value = application
        doc_repo.list_by_application.return_value = [
            Document(
                id=task.document_id,
                application_id=task.application_id,
                type="bank_statement",
                name="statement.pdf",
                status="completed",
                extracted_data={"closingBalance": "2,500.00"},
            )
        ]

        assert await queue.process(task) is True

        doc_repo.update_status.assert_awaited_once_with(task.document_id, "processing")
        client.extract.assert_awaited_once_with(task.file_url, "bank_statement")
        doc_repo.store_extraction.assert_awaited_once_with(
            task.document_id, {"closingBalance": "2,500.00"}, status="completed"
        )
        stored_id, form_data = app_repo.update_form_data.await_args.args
        assert stored_id == task.application_id
        assert form_data["financialSupport"]["savingsAmount"] == "2500.00"
        assert form_data["extractionWarnings"] == []

    @pytest.mark.asyncio
    async def test_failure_marks_document_as_error(self, queue, client, repositories):
        _, doc_repo = repositories
        client.extract.side_effect = UpstreamServiceError("document_ai request failed with status 500")
        task = _task()

        assert await queue.process(task) is False

        doc_repo.store_extraction.assert_awaited_once_with(
            task.document_id, {"error": "document_ai request failed with status 500"}, status="error"
        )

    @pytest.mark.asyncio
    async def test_merge_failure_keeps_completed_extraction(self, queue, client, repositories):
        app_repo, doc_repo = repositories
        task = _task()
        app_repo.get_for_update.return_value = Application(id=task.application_id, user_id="user-123", form_data={})
        app_repo.update_form_data.side_effect = RuntimeError("db down")

        assert await queue.process(task) is True

        doc_repo.store_extraction.assert_awaited_once_with(
            task.document_id, {"closingBalance": "2,500.00"}, status="completed"
        )

    @pytest.mark.asyncio
    async def test_missing_application_skips_merge(self, queue, repositories):
        app_repo, doc_repo = repositories
        app_repo.get_for_update.return_value = None

        assert await queue.process(_task()) is True

        doc_repo.list_by_application.assert_not_called()
        app_repo.update_form_data.assert_not_called()

    @pytest.mark.asyncio
    async def test_worker_drains_queue(self, queue, repositories):
        app_repo, _ = repositories
        app_repo.get_for_update.return_value = None
        queue.start()
        try:
            queue.submit(_task())
            await queue.join()
        finally:
            await queue.stop()

        assert queue.running is False
        app_repo.update_form_data.assert_not_called()


class TestConcurrentMerges:

    @pytest.mark.asyncio
    async def test_merges_of_one_application_do_not_interleave(self, queue, repositories):
        app_repo, doc_repo = repositories
        application_id = uuid4()
        first = ExtractionTask(uuid4(), application_id, "https://files.example.com/a.pdf", "bank_statement")
        second = ExtractionTask(uuid4(), application_id, "https://files.example.com/b.pdf", "bank_statement")
        events = []

        async def locked_row(app_id):
            events.append("lock")
            await asyncio.sleep(0)
            return Application(id=app_id, user_id="user-123", form_data={})

        async def listed(app_id):
            events.append("list")
            await asyncio.sleep(0)
            return []

        async def written(app_id, form_data):
            events.append("write")
            await asyncio.sleep(0)

        app_repo.get_for_update.side_effect = locked_row
        doc_repo.list_by_application.side_effect = listed
        app_repo.update_form_data.side_effect = written

        results = await asyncio.gather(queue.process(first), queue.process(second))

        assert results == [True, True]
        assert events == ["lock", "list", "write", "lock", "list", "write"]

    @pytest.mark.asyncio
    async def test_merge_builds_on_locked_row(self, queue, repositories):
        app_repo, doc_repo = repositories
        task = _task()
        app_repo.get_for_update.return_value = Application(
            id=task.application_id, user_id="user-123", form_data={"applicantName": "Maria Silva"}
        )
        doc_repo.list_by_application.return_value = [
            Document(
                id=task.document_id,
                application_id=task.application_id,
                type="bank_statement",
                name="statement.pdf",
                status="completed",
                extracted_data={"closingBalance": "2,500.00"},
            )
        ]

        await queue.process(task)

        app_repo.get_for_update.assert_awaited_once_with(task.application_id)
        _, form_data = app_repo.update_form_data.await_args.args
        assert form_data["applicantName"] == "Maria Silva"
        assert form_data["financialSupport"]["savingsAmount"] == "2500.00"
