"""Asyncio-side owner of the background worker thread.

The manager is the only object callers touch. It turns worker messages into
awaited results and progress callbacks, cancels tasks, and restarts the
worker after a crash. All bookkeeping happens on the event loop thread.
"""

import asyncio
import math
import queue
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from functools import partial
from pathlib import PurePath
from typing import Any

from docflow.compression.engine import CompressionEngine
from docflow.compression.models import CompressionResult
from docflow.config.settings import Settings
from docflow.documents.exceptions import NotFoundError
from docflow.documents.models import FileInput
from docflow.extraction.dispatcher import ContentExtractor
from docflow.logging.logger import Log
from docflow.worker.cancellation import CancellationRegistry
from docflow.worker.exceptions import TaskCancelledError, WorkerError, WorkerNotReadyError
from docflow.worker.protocol import (
    COMPRESS_CONTENT,
    EXTRACT_CONTENT,
    PROCESS_BATCH,
    STOP,
    BatchPayload,
    BatchProgress,
    BatchTask,
    CompressPayload,
    ExtractionPayload,
    ExtractPayload,
    ProgressEvent,
    TaskRequest,
    TaskResult,
    WorkerCrashed,
    WorkerEvent,
)
from docflow.worker.task_runner import TaskRunner
from docflow.worker.worker import Worker

ProgressCallback = Callable[[ProgressEvent], None]
BatchProgressCallback = Callable[[BatchProgress], None]
WorkerFactory = Callable[[queue.Queue, Callable[[WorkerEvent], None], CancellationRegistry], Worker]

UNINITIALIZED = "uninitialized"
READY = "ready"
CRASHED = "crashed"

CRASH_MESSAGE = "Worker error occurred"
MAX_RESTART_DELAY_SECONDS = 30.0
SHUTDOWN_JOIN_SECONDS = 5.0


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one file within a batch."""

    file: FileInput
    success: bool
    data: Any = field(default=None, repr=False)
    error: str | None = None
    exception: BaseException | None = field(default=None, repr=False, compare=False)


class DocumentWorkerManager:
    """Dispatches extraction and compression to a background worker thread."""

    def __init__(
        self,
        settings: Settings,
        extractor: ContentExtractor,
        compressor: CompressionEngine,
        worker_factory: WorkerFactory | None = None,
    ) -> None:
        self._settings = settings
        self._extractor = extractor
        self._compressor = compressor
        self._worker_factory = worker_factory or self._build_worker
        self._cancellations = CancellationRegistry()
        self._state = UNINITIALIZED
        self._loop: asyncio.AbstractEventLoop | None = None
        self._inbox: queue.Queue | None = None
        self._thread: threading.Thread | None = None
        self._generation = 0
        self._pending: dict[str, asyncio.Future] = {}
        self._progress_callbacks: dict[str, ProgressCallback] = {}
        self._batch_callbacks: dict[str, BatchProgressCallback] = {}
        self._restart_handle: asyncio.TimerHandle | None = None
        self._restart_task: asyncio.Task | None = None
        self.restarts = 0

    @property
    def state(self) -> str:
        return self._state

    def is_ready(self) -> bool:
        return self._state == READY

    @staticmethod
    def new_task_id() -> str:
        return f"task_{uuid.uuid4().hex}"

    # -- lifecycle ---------------------------------------------------------

    async def initialize(self) -> bool:
        """Start the worker thread. Returns False if it could not be started."""
        self._loop = asyncio.get_running_loop()
        generation = self._generation + 1
        inbox: queue.Queue = queue.Queue()
        try:
            worker = self._worker_factory(inbox, partial(self._post_from_worker, generation), self._cancellations)
            thread = threading.Thread(target=worker.run, name=f"docflow-worker-{generation}", daemon=True)
            thread.start()
        except Exception as exc:
            Log.error(f"Failed to initialize document worker: {exc}")
            self._state = UNINITIALIZED
            return False

        self._generation = generation
        self._inbox = inbox
        self._thread = thread
        self._state = READY
        Log.info("Document processing worker initialized")
        return True

    async def restart(self) -> bool:
        await self._stop_thread()
        self.restarts += 1
        Log.info(f"Restarting document worker (restart #{self.restarts})")
        return await self.initialize()

    async def cleanup(self) -> None:
        """Stop the worker, cancel outstanding work and drop every callback."""
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None
        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()
        self._restart_task = None
        self.cancel_all_tasks()
        self._fail_pending(WorkerError("Document worker was shut down"))
        await self._stop_thread()
        self._state = UNINITIALIZED
        Log.info("Document worker cleaned up")

    async def _stop_thread(self) -> None:
        thread, inbox = self._thread, self._inbox
        # Bumping the generation makes late messages from the old thread inert.
        self._generation += 1
        self._thread = None
        self._inbox = None
        if inbox is not None:
            inbox.put(STOP)
        if thread is not None and thread.is_alive():
            await asyncio.to_thread(thread.join, SHUTDOWN_JOIN_SECONDS)

    def _build_worker(
        self,
        inbox: queue.Queue,
        post: Callable[[WorkerEvent], None],
        cancellations: CancellationRegistry,
    ) -> Worker:
        runner = TaskRunner(self._extractor, self._compressor, cancellations)
        return Worker(inbox, runner, post)

    # -- operations --------------------------------------------------------

    async def extract_document(
        self,
        file: FileInput,
        on_progress: ProgressCallback | None = None,
        task_id: str | None = None,
    ) -> ExtractionPayload:
        """Extract text from ``file`` in the worker.

        Raises:
            WorkerNotReadyError: if the worker is not running.
            TaskCancelledError: if the task was cancelled.
            WorkerError: if the worker crashed while the task was in flight.
            ExtractionError: if extraction itself failed.
        """
        task_id = task_id or self.new_task_id()
        payload = ExtractPayload(file.data, file.name, file.mime_type)
        result = await self._call(TaskRequest(task_id, EXTRACT_CONTENT, payload), on_progress)
        return self._unwrap(result)

    async def compress_document(
        self,
        content: str,
        method: str = "basic",
        *,
        original: bytes | None = None,
        mime_type: str = "",
        on_progress: ProgressCallback | None = None,
        task_id: str | None = None,
    ) -> CompressionResult:
        task_id = task_id or self.new_task_id()
        payload = CompressPayload(content, method, original=original, mime_type=mime_type)
        result = await self._call(TaskRequest(task_id, COMPRESS_CONTENT, payload), on_progress)
        return self._unwrap(result)

    async def process_batch(
        self,
        files: Sequence[FileInput],
        operations: Sequence[str] = ("extract",),
        on_progress: BatchProgressCallback | None = None,
        method: str = "basic",
        task_id: str | None = None,
    ) -> list[BatchItemResult]:
        """Run one worker task per file; operations are assigned round-robin."""
        if not operations:
            raise ValueError("At least one batch operation is required")
        task_id = task_id or self.new_task_id()
        tasks = [
            BatchTask(
                task_id=f"{task_id}_{index}",
                type=operations[index % len(operations)],
                file=file,
                method=method,
            )
            for index, file in enumerate(files)
        ]
        self._ensure_ready()
        if on_progress is not None:
            self._batch_callbacks[task_id] = on_progress
        try:
            result = await self._call(TaskRequest(task_id, PROCESS_BATCH, BatchPayload(tasks)))
        finally:
            self._batch_callbacks.pop(task_id, None)
        sub_results: list[TaskResult] = self._unwrap(result)
        return [
            BatchItemResult(
                file=task.file,
                success=sub.success,
                data=sub.data,
                error=sub.error,
                exception=sub.exception,
            )
            for task, sub in zip(tasks, sub_results)
        ]

    async def process_large_document(
        self,
        file: FileInput,
        chunk_size: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractionPayload:
        """Extract ``file`` chunk by chunk; failed chunks are logged and skipped."""
        chunk_size = chunk_size or self._settings.chunk_size_bytes
        total = max(1, math.ceil(file.size / chunk_size))
        if total == 1:
            return replace(await self.extract_document(file, on_progress), chunks=1)

        self._ensure_ready()
        task_id = self.new_task_id()
        name = PurePath(file.name)
        texts: list[str] = []
        words = characters = 0
        for index in range(total):
            if on_progress is not None:
                on_progress(
                    ProgressEvent(
                        task_id,
                        index / total * 100,
                        "chunked-extraction",
                        f"Processing chunk {index + 1} of {total}",
                    )
                )
            chunk = FileInput(
                name=f"{name.stem}_chunk_{index}{name.suffix}",
                mime_type=file.mime_type,
                data=file.data[index * chunk_size : (index + 1) * chunk_size],
            )
            try:
                extracted = await self.extract_document(chunk)
            except (WorkerNotReadyError, TaskCancelledError):
                raise
            except Exception as exc:
                Log.warning(f"Failed to process chunk {index + 1} of {file.name}: {exc}")
                continue
            texts.append(extracted.content)
            words += extracted.word_count
            characters += extracted.character_count

        if on_progress is not None:
            on_progress(ProgressEvent(task_id, 100, "chunked-extraction", f"Processed {total} chunks"))
        return ExtractionPayload(
            content="\n".join(texts).strip(),
            word_count=words,
            character_count=characters,
            chunks=total,
        )

    def cancel_task(self, task_id: str) -> None:
        """Cancel one task; its callback is dropped and its result discarded.

        A task that is still queued or running in the worker is flagged and
        dropped at its next checkpoint.

        Raises:
            NotFoundError: if no awaited, queued or running task has this id.
        """
        flagged = self._cancellations.cancel(task_id)
        future = self._pending.pop(task_id, None)
        if future is None and not flagged:
            raise NotFoundError(f"Task {task_id} not found")
        self._progress_callbacks.pop(task_id, None)
        self._batch_callbacks.pop(task_id, None)
        if future is not None and not future.done():
            future.set_exception(TaskCancelledError(f"Task {task_id} was cancelled"))
        Log.info(f"Cancelled task {task_id}")

    def cancel_all_tasks(self) -> None:
        for task_id in list(self._pending):
            self.cancel_task(task_id)
        self._progress_callbacks.clear()
        self._batch_callbacks.clear()
        self._cancellations.cancel_all()

    def stats(self) -> dict[str, Any]:
        return {
            "active_callbacks": len(self._progress_callbacks) + len(self._batch_callbacks),
            "pending_tasks": len(self._pending),
            "tracked_tasks": len(self._cancellations),
            "is_ready": self.is_ready(),
            "state": self._state,
            "restarts": self.restarts,
        }

    # -- plumbing ----------------------------------------------------------

    def _ensure_ready(self) -> None:
        if not self.is_ready():
            raise WorkerNotReadyError(f"Document worker is not ready (state: {self._state})")

    async def _call(self, request: TaskRequest, on_progress: ProgressCallback | None = None) -> TaskResult:
        self._ensure_ready()
        task_id = request.task_id
        future = self._loop.create_future()
        self._pending[task_id] = future
        if on_progress is not None:
            self._progress_callbacks[task_id] = on_progress
        self._cancellations.register(task_id)
        self._inbox.put(request)
        try:
            return await future
        finally:
            self._pending.pop(task_id, None)
            self._progress_callbacks.pop(task_id, None)

    @staticmethod
    def _unwrap(result: TaskResult) -> Any:
        if result.cancelled:
            raise TaskCancelledError(f"Task {result.task_id} was cancelled")
        if not result.success:
            if result.exception is not None:
                raise result.exception
            raise WorkerError(result.error or f"Task {result.task_id} failed")
        return result.data

    def _post_from_worker(self, generation: int, event: WorkerEvent) -> None:
        """Called on the worker thread; hops onto the event loop."""
        try:
            self._loop.call_soon_threadsafe(self._handle_event, generation, event)
        except RuntimeError:
            Log.debug(f"Event loop closed, dropping worker message {type(event).__name__}")

    def _handle_event(self, generation: int, event: WorkerEvent) -> None:
        if generation != self._generation:
            return
        if isinstance(event, ProgressEvent):
            callback = self._progress_callbacks.get(event.task_id)
            if callback is not None:
                callback(event)
        elif isinstance(event, BatchProgress):
            callback = self._batch_callbacks.get(event.task_id)
            if callback is not None:
                callback(event)
        elif isinstance(event, TaskResult):
            future = self._pending.pop(event.task_id, None)
            if future is None or future.done():
                Log.debug(f"Discarding result for task {event.task_id}")
                return
            future.set_result(event)
        elif isinstance(event, WorkerCrashed):
            self._handle_crash(event.error)

    def _handle_crash(self, error: str) -> None:
        Log.error(f"Document worker crashed: {error}")
        self._state = CRASHED
        for task_id, callback in list(self._progress_callbacks.items()):
            callback(ProgressEvent(task_id, 0, "error", CRASH_MESSAGE))
        for task_id, callback in list(self._batch_callbacks.items()):
            callback(BatchProgress(task_id, 0, 0, CRASH_MESSAGE, failed=True))
        self._progress_callbacks.clear()
        self._batch_callbacks.clear()
        self._fail_pending(WorkerError(f"Document worker crashed: {error}"))
        # The crashed thread's inbox is abandoned, so none of its tasks will run.
        self._cancellations.clear()

        delay = min(self._settings.worker_restart_delay_seconds, MAX_RESTART_DELAY_SECONDS)
        Log.info(f"Scheduling worker restart in {delay}s")
        self._restart_handle = self._loop.call_later(delay, self._begin_restart)

    def _begin_restart(self) -> None:
        self._restart_handle = None
        self._restart_task = self._loop.create_task(self.restart())

    def _fail_pending(self, error: WorkerError) -> None:
        pending = list(self._pending.items())
        self._pending.clear()
        for task_id, future in pending:
            if not future.done():
                future.set_exception(error)
                Log.debug(f"Failed pending task {task_id}: {error}")
