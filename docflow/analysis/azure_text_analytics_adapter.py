"""Azure AI Language (Text Analytics) adapter over the REST API.

One document per request; the ``:analyze-text`` endpoint is called with the
task kind matching each facet.
"""

from typing import Any, ClassVar

import httpx

from docflow.analysis.client_base import BaseTextAnalyticsClient
from docflow.analysis.exceptions import ProviderError, ProviderNetworkError, ProviderResponseError
from docflow.analysis.models import Entity, Sentiment


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Map HTTP failures onto the provider error hierarchy."""
    if response.status_code == 429 or response.status_code >= 500:
        raise ProviderNetworkError(f"{provider} returned HTTP {response.status_code}")
    if response.status_code >= 400:
        raise ProviderError(
            f"{provider} returned HTTP {response.status_code}: {response.text[:200]}"
        )


class AzureTextAnalyticsAdapter(BaseTextAnalyticsClient):
    """Sentiment, key phrases and entities from Azure AI Language."""

    name = "azure-text-analytics"

    API_VERSION: ClassVar[str] = "2023-04-01"
    MAX_DOCUMENT_CHARS: ClassVar[int] = 5120

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        timeout_seconds: int,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{endpoint.rstrip('/')}/language/:analyze-text"
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def analyze_sentiment(self, text: str) -> Sentiment:
        document = self._analyze("SentimentAnalysis", text)
        try:
            raw_scores = document["confidenceScores"]
            scores = {
                "positive": float(raw_scores["positive"]),
                "negative": float(raw_scores["negative"]),
                "neutral": float(raw_scores["neutral"]),
            }
            overall = document["sentiment"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderResponseError(f"Malformed sentiment response: {exc}") from exc
        if overall not in scores:
            overall = "neutral"
        return Sentiment(overall=overall, confidence=max(scores.values()), scores=scores)

    def extract_key_phrases(self, text: str) -> list[str]:
        document = self._analyze("KeyPhraseExtraction", text)
        phrases = document.get("keyPhrases")
        if not isinstance(phrases, list):
            raise ProviderResponseError("Malformed key phrase response")
        return [str(p) for p in phrases]

    def recognize_entities(self, text: str) -> list[Entity]:
        document = self._analyze("EntityRecognition", text)
        try:
            return [
                Entity(
                    text=item["text"],
                    category=item["category"],
                    confidence=float(item["confidenceScore"]),
                )
                for item in document["entities"]
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderResponseError(f"Malformed entity response: {exc}") from exc

    def _analyze(self, kind: str, text: str) -> dict[str, Any]:
        payload = {
            "kind": kind,
            "analysisInput": {
                "documents": [{"id": "1", "text": text[: self.MAX_DOCUMENT_CHARS]}],
            },
            "parameters": {},
        }
        try:
            response = self._client.post(
                self._url,
                params={"api-version": self.API_VERSION},
                headers={"Ocp-Apim-Subscription-Key": self._api_key},
                json=payload,
            )
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise ProviderNetworkError(f"{self.name} network error: {exc}") from exc
        raise_for_provider_status(response, self.name)

        try:
            results = response.json()["results"]
        except (ValueError, KeyError, TypeError) as exc:
            raise ProviderResponseError(f"{self.name} returned invalid JSON: {exc}") from exc
        if not isinstance(results, dict):
            raise ProviderResponseError(f"{self.name} returned malformed results")
        errors = results.get("errors") or []
        documents = results.get("documents") or []
        if not isinstance(errors, list) or not isinstance(documents, list):
            raise ProviderResponseError(f"{self.name} returned malformed results")
        if errors:
            detail = errors[0].get("error") if isinstance(errors[0], dict) else errors[0]
            raise ProviderError(f"{self.name} rejected document: {detail}")
        if not documents or not isinstance(documents[0], dict):
            raise ProviderResponseError(f"{self.name} returned no documents")
        return documents[0]
