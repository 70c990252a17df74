from abc import ABC, abstractmethod

from docflow.translation.models import ProviderTranslation


class BaseTranslationClient(ABC):
    """Contract for remote translation providers."""

    name: str = "translator"

    @abstractmethod
    def translate(
        self,
        text: str,
        target_language: str,
        source_language: str | None = None,
    ) -> ProviderTranslation:
        """Translate ``text`` into ``target_language``.

        Raises:
            ProviderError: on any provider failure.
        """
