class WorkerError(Exception):
    """Raised when the background worker crashed or is unusable."""


class WorkerNotReadyError(WorkerError):
    """Raised when work is dispatched before the worker is initialized."""


class TaskCancelledError(Exception):
    """Raised to the caller of a task that was cancelled."""
