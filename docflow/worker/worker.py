import queue
from collections.abc import Callable

from docflow.logging.logger import Log
from docflow.worker.protocol import STOP, TaskRequest, WorkerCrashed, WorkerEvent
from docflow.worker.task_runner import TaskRunner


class Worker:
    """Poll loop: wait -> take request -> dispatch -> post result."""

    def __init__(
        self,
        inbox: queue.Queue,
        task_runner: TaskRunner,
        post: Callable[[WorkerEvent], None],
        poll_interval_seconds: float = 0.5,
    ) -> None:
        self._inbox = inbox
        self._task_runner = task_runner
        self._post = post
        self._poll_interval_seconds = poll_interval_seconds

    def run(self, max_tasks: int | None = None) -> None:
        """Main loop. Runs until the stop sentinel arrives.

        If max_tasks is set, stop after processing that many tasks (for testing).
        Anything escaping the task runner is reported as a crash and ends the loop.
        """
        Log.info("Worker started, waiting for tasks")
        tasks_done = 0
        try:
            while max_tasks is None or tasks_done < max_tasks:
                request = self._next_request()
                if request is STOP:
                    break
                if request is None:
                    continue
                result = self._task_runner.run(request, self._post)
                self._post(result)
                tasks_done += 1
        except Exception as exc:
            Log.exception(f"Worker crashed: {exc}")
            self._post(WorkerCrashed(error=str(exc)))
            return
        Log.info("Worker stopped")

    def _next_request(self) -> TaskRequest | object | None:
        try:
            return self._inbox.get(timeout=self._poll_interval_seconds)
        except queue.Empty:
            Log.debug("No tasks available, waiting")
            return None
