from collections.abc import Callable

from docflow.compression.engine import CompressionEngine
from docflow.compression.models import CompressionResult
from docflow.documents.text_stats import count_words
from docflow.extraction.dispatcher import ContentExtractor
from docflow.logging.logger import Log
from docflow.worker.cancellation import CancellationRegistry, CancellationToken
from docflow.worker.exceptions import TaskCancelledError
from docflow.worker.protocol import (
    COMPRESS_CONTENT,
    EXTRACT_CONTENT,
    PROCESS_BATCH,
    BatchPayload,
    BatchProgress,
    BatchTask,
    CompressPayload,
    ExtractionPayload,
    ExtractPayload,
    ProgressEvent,
    TaskRequest,
    TaskResult,
    WorkerEvent,
)

Post = Callable[[WorkerEvent], None]

CANCELLED_MESSAGE = "Processing was cancelled"


class TaskRunner:
    """Run one task, catch exceptions, and report the outcome as a TaskResult."""

    def __init__(
        self,
        extractor: ContentExtractor,
        compressor: CompressionEngine,
        cancellations: CancellationRegistry,
    ) -> None:
        self._extractor = extractor
        self._compressor = compressor
        self._cancellations = cancellations
        self._handlers = {
            EXTRACT_CONTENT: self._extract_content,
            COMPRESS_CONTENT: self._compress_content,
            PROCESS_BATCH: self._process_batch,
        }

    def run(self, request: TaskRequest, post: Post) -> TaskResult:
        """Execute a single request; failures never escape."""
        Log.debug(f"Running task {request.task_id} ({request.method})")
        token = self._cancellations.token(request.task_id)
        try:
            handler = self._handlers.get(request.method)
            if handler is None:
                raise ValueError(f"Unknown worker method '{request.method}'")
            token.raise_if_cancelled()
            data = handler(request.task_id, request.payload, token, post)
            Log.debug(f"Task {request.task_id} completed successfully")
            return TaskResult(task_id=request.task_id, success=True, data=data)
        except TaskCancelledError as exc:
            Log.info(f"Task {request.task_id} cancelled")
            return TaskResult(
                task_id=request.task_id,
                success=False,
                error=CANCELLED_MESSAGE,
                cancelled=True,
                exception=exc,
            )
        except Exception as exc:
            Log.error(f"Task {request.task_id} failed: {exc}")
            return TaskResult(task_id=request.task_id, success=False, error=str(exc), exception=exc)
        finally:
            self._cancellations.release(request.task_id)

    def _extract_content(
        self,
        task_id: str,
        payload: ExtractPayload,
        token: CancellationToken,
        post: Post,
    ) -> ExtractionPayload:
        post(ProgressEvent(task_id, 0, "extraction", "Extracting content: 0%"))
        content = self._extractor.extract_bytes(payload.data, payload.filename, payload.mime_type)
        token.raise_if_cancelled()
        post(ProgressEvent(task_id, 100, "extraction", "Extracting content: 100%"))
        return ExtractionPayload(
            content=content,
            word_count=count_words(content),
            character_count=len(content),
        )

    def _compress_content(
        self,
        task_id: str,
        payload: CompressPayload,
        token: CancellationToken,
        post: Post,
    ) -> CompressionResult:
        def report(progress: float) -> None:
            token.raise_if_cancelled()
            post(ProgressEvent(task_id, progress, "compression", f"Compressing: {progress:.0f}%"))

        return self._compressor.compress(
            payload.content,
            payload.method,
            original=payload.original,
            mime_type=payload.mime_type,
            on_progress=report,
        )

    def _process_batch(
        self,
        task_id: str,
        payload: BatchPayload,
        token: CancellationToken,
        post: Post,
    ) -> list[TaskResult]:
        """Run every sub-task in order; one failure does not stop the batch."""
        total = len(payload.tasks)
        results: list[TaskResult] = []
        for index, task in enumerate(payload.tasks):
            token.raise_if_cancelled()
            post(BatchProgress(task_id, index, total, f"Processing {task.type}: {task.file.name}"))
            results.append(self.run(self._sub_request(task), post))
        post(BatchProgress(task_id, total, total, "Batch processing completed"))
        return results

    @staticmethod
    def _sub_request(task: BatchTask) -> TaskRequest:
        if task.type == "extract":
            payload = ExtractPayload(task.file.data, task.file.name, task.file.mime_type)
            return TaskRequest(task.task_id, EXTRACT_CONTENT, payload)
        if task.type == "compress":
            content = task.file.data.decode("utf-8", errors="replace")
            payload = CompressPayload(
                content,
                task.method,
                original=task.file.data,
                mime_type=task.file.mime_type,
            )
            return TaskRequest(task.task_id, COMPRESS_CONTENT, payload)
        return TaskRequest(task.task_id, task.type, payload=None)
