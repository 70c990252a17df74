"""Translation with the same remote-first, local-second selection as analysis.

Inputs longer than ``max_provider_chars`` are truncated before any provider
call; the returned translation is flagged ``truncated`` so callers can tell
that only the leading part was translated. The local fallback performs no
translation: it returns the source text unchanged with zero confidence.
"""

from collections.abc import Sequence

from docflow.analysis.language import detect_language
from docflow.analysis.outcome import FacetChain, FacetProvider, Local
from docflow.analysis.retry import RetryPolicy
from docflow.logging.logger import Log
from docflow.translation.client_base import BaseTranslationClient
from docflow.translation.exceptions import TranslationError
from docflow.translation.models import DocumentTranslation, ProviderTranslation


class TranslationEngine:
    """Stateless translation over document text."""

    def __init__(
        self,
        clients: Sequence[BaseTranslationClient] = (),
        *,
        retry: RetryPolicy | None = None,
        max_provider_chars: int = 4000,
    ) -> None:
        self._clients = list(clients)
        self._retry = retry or RetryPolicy(max_attempts=1)
        self._max_provider_chars = max_provider_chars

    def translate(
        self,
        text: str,
        target_language: str,
        source_language: str | None = None,
    ) -> DocumentTranslation:
        """Translate ``text`` into ``target_language``.

        Raises:
            TranslationError: if no target language is given.
        """
        target = (target_language or "").strip().lower()
        if not target:
            raise TranslationError("A target language is required")
        source = (source_language or detect_language(text).code).lower()

        if source == target:
            return DocumentTranslation(
                source_language=source,
                target_language=target,
                translated_text=text,
                confidence=1.0,
                provider="identity",
            )

        truncated = len(text) > self._max_provider_chars
        if truncated and self._clients:
            Log.warning(
                f"Translation input truncated from {len(text)} to "
                f"{self._max_provider_chars} characters for provider calls"
            )

        providers = [
            FacetProvider(
                client.name,
                lambda payload, client=client: client.translate(payload, target, source),
            )
            for client in self._clients
        ]
        chain: FacetChain[ProviderTranslation] = FacetChain(
            "translation",
            providers,
            lambda _payload: ProviderTranslation(text=text, confidence=0.0),
            self._retry,
        )
        outcome = chain.run(text[: self._max_provider_chars])
        result = outcome.value

        if isinstance(outcome, Local):
            Log.warning(f"No translation provider available for {source}->{target}")
        return DocumentTranslation(
            source_language=result.detected_language or source,
            target_language=target,
            translated_text=result.text,
            confidence=result.confidence,
            provider=outcome.source,
            truncated=truncated and not isinstance(outcome, Local),
        )
