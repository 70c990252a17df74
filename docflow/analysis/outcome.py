"""Remote-first, local-second selection for each analysis facet.

A facet result is tagged ``Remote`` when a provider answered and ``Local``
when the heuristic fallback produced it. New providers are appended to a
chain without touching the fallback logic.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from docflow.analysis.exceptions import AnalysisError, ProviderError
from docflow.analysis.retry import RetryPolicy
from docflow.logging.logger import Log

T = TypeVar("T")

LOCAL_SOURCE = "local"


@dataclass(frozen=True)
class Remote(Generic[T]):
    """Result produced by a remote provider."""

    value: T
    provider: str

    @property
    def source(self) -> str:
        return self.provider


@dataclass(frozen=True)
class Local(Generic[T]):
    """Result produced by the local fallback."""

    value: T

    @property
    def source(self) -> str:
        return LOCAL_SOURCE


@dataclass(frozen=True)
class FacetProvider(Generic[T]):
    """A named remote call for one facet."""

    name: str
    call: Callable[[str], T]


class FacetChain(Generic[T]):
    """Tries each provider in order, then the fallback."""

    def __init__(
        self,
        facet: str,
        providers: Sequence[FacetProvider[T]],
        fallback: Callable[[str], T],
        retry: RetryPolicy | None = None,
    ) -> None:
        self._facet = facet
        self._providers = list(providers)
        self._fallback = fallback
        self._retry = retry or RetryPolicy(max_attempts=1)

    @property
    def providers(self) -> list[FacetProvider[T]]:
        return list(self._providers)

    def run(self, text: str) -> Remote[T] | Local[T]:
        """Return the first provider result, or the fallback result.

        Raises:
            AnalysisError: only if the local fallback itself fails.
        """
        for provider in self._providers:
            try:
                return Remote(self._retry.call(provider.call, text), provider.name)
            except ProviderError as exc:
                Log.warning(
                    f"{self._facet}: provider '{provider.name}' failed, falling back: {exc}"
                )
        try:
            return Local(self._fallback(text))
        except Exception as exc:
            raise AnalysisError(f"{self._facet} fallback failed: {exc}") from exc
