"""Background extraction queue.

Uploads enqueue an ``ExtractionTask`` and return; worker tasks started by the
app lifespan pull tasks, call Document AI, store the result and re-merge the
application's form data under a per-application lock. OCR failures mark the
document ``error``. Failures of either step are logged and never reach the
uploader.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from visa_assistant.core.config import QueueSettings
from visa_assistant.repositories.application_repository import ApplicationRepository
from visa_assistant.repositories.document_repository import DocumentRepository
from visa_assistant.services.application_service import merge_and_persist
from visa_assistant.services.ocr.document_ai_client import DocumentAIClient
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ExtractionTask:
    document_id: UUID
    application_id: UUID
    file_url: str
    document_type: str


class ExtractionQueue:
    """``asyncio.Queue`` of extraction tasks drained by N worker tasks.

    Attributes:
        session_factory: Creates one session per processed task
        client: Document AI collaborator
        worker_count: Number of worker tasks started by ``start``
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        client: Optional[DocumentAIClient] = None,
        queue_settings: Optional[QueueSettings] = None,
        repositories: Optional[Callable[[AsyncSession], tuple]] = None,
    ):
        queue_settings = queue_settings or QueueSettings()
        self.session_factory = session_factory
        self.client = client or DocumentAIClient()
        self.worker_count = max(1, queue_settings.workers)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_settings.max_size)
        self._repositories = repositories or (
            lambda session: (ApplicationRepository(session), DocumentRepository(session))
        )
        self._workers: List[asyncio.Task] = []
        self._merge_locks: Dict[UUID, asyncio.Lock] = {}

    @property
    def running(self) -> bool:
        return bool(self._workers)

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"extraction-worker-{i}")
            for i in range(self.worker_count)
        ]
        LOGGER.info(f"Started {self.worker_count} extraction workers")

    async def stop(self) -> None:
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        LOGGER.info("Extraction workers stopped")

    def submit(self, task: ExtractionTask) -> bool:
        """Enqueue without waiting.

        Returns:
            False when the queue is full; the document then stays ``pending``
            until it is reprocessed
        """
        try:
            self.queue.put_nowait(task)
        except asyncio.QueueFull:
            LOGGER.warning(
                "Extraction queue full, task dropped",
                extra={"document_id": str(task.document_id), "queue_size": self.queue.qsize()},
            )
            return False
        LOGGER.info(
            f"Queued extraction for {task.document_type}",
            extra={"document_id": str(task.document_id), "application_id": str(task.application_id)},
        )
        return True

    async def join(self) -> None:
        await self.queue.join()

    async def _worker(self, index: int) -> None:
        while True:
            task = await self.queue.get()
            try:
                await self.process(task)
            finally:
                self.queue.task_done()

    async def process(self, task: ExtractionTask) -> bool:
        """Run one extraction end to end; returns whether the OCR step completed.

        A failed merge after a stored extraction is logged and leaves the
        document ``completed``; the next merge or a reprocess picks it up.
        """
        async with self.session_factory() as session:
            application_repository, document_repository = self._repositories(session)
            try:
                await document_repository.update_status(task.document_id, "processing")
                fields = await self.client.extract(task.file_url, task.document_type)
                await document_repository.store_extraction(task.document_id, fields, status="completed")
            except Exception as e:
                LOGGER.error(
                    f"Extraction failed for document {task.document_id}: {e}",
                    exc_info=True,
                    extra={"document_id": str(task.document_id), "document_type": task.document_type},
                )
                await self._mark_failed(document_repository, task, e)
                return False

            try:
                async with self._merge_lock(task.application_id):
                    result = await merge_and_persist(
                        task.application_id, application_repository, document_repository
                    )
            except Exception as e:
                LOGGER.error(
                    f"Merging document {task.document_id} into application {task.application_id} failed: {e}",
                    exc_info=True,
                    extra={"document_id": str(task.document_id), "application_id": str(task.application_id)},
                )
                return True

            if result is not None:
                LOGGER.info(
                    "Extraction merged into application",
                    extra={
                        "document_id": str(task.document_id),
                        "application_id": str(task.application_id),
                        "warnings": len(result.warnings),
                    },
                )
            return True

    def _merge_lock(self, application_id: UUID) -> asyncio.Lock:
        return self._merge_locks.setdefault(application_id, asyncio.Lock())

    @staticmethod
    async def _mark_failed(document_repository: DocumentRepository, task: ExtractionTask, error: Exception) -> None:
        try:
            await document_repository.store_extraction(task.document_id, {"error": str(error)}, status="error")
        except Exception:
            LOGGER.error(
                f"Could not mark document {task.document_id} as failed",
                exc_info=True,
            )
