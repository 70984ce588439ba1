"""Background work queues."""

from visa_assistant.services.queue.extraction_queue import ExtractionQueue, ExtractionTask

__all__ = ["ExtractionQueue", "ExtractionTask"]
