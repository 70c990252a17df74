"""Document analysis: sentiment, key phrases, entities, language, summary,
topics and readability.

Sentiment, key phrases, entities and the summary each run through a
``FacetChain``; language, topics and readability are always computed locally.
"""

from docflow.analysis.chat_task import ChatTask
from docflow.analysis.exceptions import AnalysisError, ProviderError, ProviderResponseError
from docflow.analysis.heuristics import (
    basic_topics,
    extractive_summary,
    readability_score,
)
from docflow.analysis.insights import basic_insights, parse_insights_response
from docflow.analysis.language import detect_language
from docflow.analysis.models import DocumentAnalysis, DocumentInsights, Entity, Sentiment
from docflow.analysis.outcome import FacetChain, FacetProvider
from docflow.analysis.retry import RetryPolicy
from docflow.documents.models import ProcessedDocument
from docflow.logging.logger import Log


class AnalysisEngine:
    """Stateless analysis over document text."""

    def __init__(
        self,
        *,
        sentiment: FacetChain[Sentiment],
        key_phrases: FacetChain[list[str]],
        entities: FacetChain[list[Entity]],
        summary_task: ChatTask | None = None,
        insights_task: ChatTask | None = None,
        retry: RetryPolicy | None = None,
        summary_min_chars: int = 500,
    ) -> None:
        self._sentiment = sentiment
        self._key_phrases = key_phrases
        self._entities = entities
        self._summary_task = summary_task
        self._insights_task = insights_task
        self._retry = retry or RetryPolicy(max_attempts=1)
        self._summary_min_chars = summary_min_chars

    def analyze(self, text: str) -> DocumentAnalysis:
        """Run every facet over ``text``.

        Raises:
            AnalysisError: only when a facet's local fallback fails.
        """
        sentiment = self._sentiment.run(text)
        key_phrases = self._key_phrases.run(text)
        entities = self._entities.run(text)
        summary = self._summary_chain(text).run(text)
        try:
            language = detect_language(text)
            topics = basic_topics(text)
            readability = readability_score(text)
        except Exception as exc:
            raise AnalysisError(f"Local analysis failed: {exc}") from exc

        analysis = DocumentAnalysis(
            sentiment=sentiment.value,
            key_phrases=key_phrases.value,
            entities=entities.value,
            language=language,
            summary=summary.value,
            topics=topics,
            readability_score=readability,
            sources={
                "sentiment": sentiment.source,
                "key_phrases": key_phrases.source,
                "entities": entities.source,
                "summary": summary.source,
            },
        )
        Log.info(
            f"Analysis complete: sentiment={analysis.sentiment.overall} "
            f"language={language.code} sources={analysis.sources}"
        )
        return analysis

    def summarize(self, text: str) -> str:
        return self._summary_chain(text).run(text).value

    def generate_insights(self, document: ProcessedDocument) -> DocumentInsights:
        """Insights from the chat provider, or statistics-based ones."""
        if self._insights_task is not None:
            try:
                response = self._retry.call(self._insights_task, document.content)
                parsed = parse_insights_response(response, self._insights_task.provider_name)
                if parsed.insights or parsed.recommendations or parsed.prd:
                    return parsed
                raise ProviderResponseError("No insights found in provider response")
            except ProviderError as exc:
                Log.warning(f"insights: provider failed, falling back: {exc}")
        return basic_insights(document)

    def _summary_chain(self, text: str) -> FacetChain[str]:
        providers: list[FacetProvider[str]] = []
        if self._summary_task is not None and len(text) > self._summary_min_chars:
            providers.append(FacetProvider(self._summary_task.provider_name, self._summary_task))
        return FacetChain("summary", providers, extractive_summary, self._retry)
