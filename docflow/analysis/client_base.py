from abc import ABC, abstractmethod

from docflow.analysis.models import Entity, Sentiment


class BaseTextAnalyticsClient(ABC):
    """Contract for remote sentiment, key-phrase and entity providers."""

    name: str = "text-analytics"

    @abstractmethod
    def analyze_sentiment(self, text: str) -> Sentiment:
        """Return the provider's sentiment for ``text``.

        Raises:
            ProviderError: on any provider failure.
        """

    @abstractmethod
    def extract_key_phrases(self, text: str) -> list[str]:
        """Return the provider's key phrases for ``text``.

        Raises:
            ProviderError: on any provider failure.
        """

    @abstractmethod
    def recognize_entities(self, text: str) -> list[Entity]:
        """Return the provider's entities for ``text``.

        Raises:
            ProviderError: on any provider failure.
        """


class BaseChatClient(ABC):
    """Contract for generative providers used for summaries, insights and translation."""

    name: str = "chat"

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        """Return provider response as plain text."""
