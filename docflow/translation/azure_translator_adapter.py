from typing import ClassVar

import httpx

from docflow.analysis.azure_text_analytics_adapter import raise_for_provider_status
from docflow.analysis.exceptions import ProviderNetworkError, ProviderResponseError
from docflow.translation.client_base import BaseTranslationClient
from docflow.translation.models import ProviderTranslation


class AzureTranslatorAdapter(BaseTranslationClient):
    """Azure AI Translator v3 REST adapter."""

    name = "azure-translator"

    API_VERSION: ClassVar[str] = "3.0"

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        region: str,
        timeout_seconds: int,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._region = region
        self._url = f"{endpoint.rstrip('/')}/translate"
        self._client = http_client or httpx.Client(timeout=timeout_seconds)

    def translate(
        self,
        text: str,
        target_language: str,
        source_language: str | None = None,
    ) -> ProviderTranslation:
        params = {"api-version": self.API_VERSION, "to": target_language}
        if source_language:
            params["from"] = source_language
        headers = {"Ocp-Apim-Subscription-Key": self._api_key}
        if self._region:
            headers["Ocp-Apim-Subscription-Region"] = self._region
        try:
            response = self._client.post(
                self._url, params=params, headers=headers, json=[{"Text": text}]
            )
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise ProviderNetworkError(f"{self.name} network error: {exc}") from exc
        raise_for_provider_status(response, self.name)

        try:
            item = response.json()[0]
            translated = item["translations"][0]["text"]
            detected = item.get("detectedLanguage") or {}
            if not isinstance(translated, str) or not isinstance(detected, dict):
                raise TypeError("unexpected translation item shape")
            confidence = float(detected.get("score", 0.9))
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderResponseError(f"{self.name} returned invalid payload: {exc}") from exc

        return ProviderTranslation(
            text=translated,
            detected_language=detected.get("language") or source_language,
            confidence=confidence,
        )
