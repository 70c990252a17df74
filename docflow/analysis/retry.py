import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from docflow.analysis.exceptions import ProviderNetworkError
from docflow.config.settings import Settings
from docflow.logging.logger import Log

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for transient provider failures."""

    max_attempts: int = 3
    backoff_multiplier: float = 2.0
    initial_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            backoff_multiplier=settings.retry_backoff_multiplier,
            initial_delay=settings.retry_initial_delay_seconds,
        )

    def call(self, func: Callable[..., T], *args: object) -> T:
        """Invoke ``func``, retrying only ProviderNetworkError."""
        attempts = max(1, self.max_attempts)
        delay = self.initial_delay
        for attempt in range(1, attempts + 1):
            try:
                return func(*args)
            except ProviderNetworkError as exc:
                if attempt >= attempts:
                    raise
                Log.warning(
                    f"Provider call failed (attempt {attempt}/{attempts}), "
                    f"retrying in {delay:.1f}s: {exc}"
                )
                self.sleep(delay)
                delay *= self.backoff_multiplier
        raise AssertionError("unreachable")
