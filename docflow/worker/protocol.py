"""Messages exchanged between the manager and the background worker.

Requests flow manager -> worker through the inbox queue; every other message
flows worker -> manager through the ``post`` callable.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from docflow.documents.models import FileInput

EXTRACT_CONTENT = "extract_content"
COMPRESS_CONTENT = "compress_content"
PROCESS_BATCH = "process_batch"

STOP = object()


@dataclass(frozen=True)
class ExtractPayload:
    data: bytes = field(repr=False)
    filename: str
    mime_type: str


@dataclass(frozen=True)
class CompressPayload:
    content: str = field(repr=False)
    method: str = "basic"
    original: bytes | None = field(default=None, repr=False)
    mime_type: str = ""


@dataclass(frozen=True)
class BatchTask:
    """One file of a batch and the operation to run on it."""

    task_id: str
    type: str  # "extract" | "compress"
    file: FileInput
    method: str = "basic"


@dataclass(frozen=True)
class BatchPayload:
    tasks: list[BatchTask]


@dataclass(frozen=True)
class TaskRequest:
    task_id: str
    method: str
    payload: ExtractPayload | CompressPayload | BatchPayload


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of a single task, 0-100."""

    task_id: str
    progress: float
    stage: str
    message: str | None = None


@dataclass(frozen=True)
class BatchProgress:
    """Aggregate progress of a batch."""

    task_id: str
    completed: int
    total: int
    current_task: str | None = None
    failed: bool = False

    @property
    def overall_progress(self) -> float:
        if self.total == 0:
            return 100.0 if not self.failed else 0.0
        return self.completed / self.total * 100


@dataclass(frozen=True)
class TaskResult:
    """Final outcome of a task; ``exception`` holds the original failure."""

    task_id: str
    success: bool
    data: object = None
    error: str | None = None
    cancelled: bool = False
    exception: Exception | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class WorkerCrashed:
    error: str


@dataclass(frozen=True)
class ExtractionPayload:
    """Text extracted by the worker."""

    content: str = field(repr=False)
    word_count: int
    character_count: int
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    chunks: int = 1


WorkerEvent = ProgressEvent | BatchProgress | TaskResult | WorkerCrashed
