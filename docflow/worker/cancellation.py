import threading

from docflow.worker.exceptions import TaskCancelledError


class CancellationToken:
    """Cooperative cancellation flag checked by the worker between stages."""

    def __init__(self, task_id: str, event: threading.Event) -> None:
        self.task_id = task_id
        self._event = event

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TaskCancelledError(f"Task {self.task_id} was cancelled")


class CancellationRegistry:
    """Thread-safe map of task id to cancellation flag.

    The manager registers each task before queueing it, and the task runner
    releases it when the task finishes. A flag set while the task is still
    queued stays in place, so the worker drops the task as soon as it picks
    it up.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: dict[str, threading.Event] = {}

    def register(self, task_id: str) -> None:
        with self._lock:
            self._events.setdefault(task_id, threading.Event())

    def token(self, task_id: str) -> CancellationToken:
        with self._lock:
            event = self._events.setdefault(task_id, threading.Event())
        return CancellationToken(task_id, event)

    def cancel(self, task_id: str) -> bool:
        """Flag one registered task. Returns False for unknown or finished ids."""
        with self._lock:
            event = self._events.get(task_id)
        if event is None:
            return False
        event.set()
        return True

    def cancel_all(self) -> None:
        """Flag every registered task; entries stay until the runner releases them."""
        with self._lock:
            events = list(self._events.values())
        for event in events:
            event.set()

    def release(self, task_id: str) -> None:
        with self._lock:
            self._events.pop(task_id, None)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
