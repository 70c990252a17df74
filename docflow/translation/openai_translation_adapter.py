from docflow.analysis.chat_task import ChatTask
from docflow.analysis.language import language_name
from docflow.translation.client_base import BaseTranslationClient
from docflow.translation.models import ProviderTranslation


class OpenAITranslationAdapter(BaseTranslationClient):
    """Translation through a chat completion prompt."""

    CONFIDENCE = 0.8

    def __init__(self, task: ChatTask) -> None:
        self._task = task
        self.name = task.provider_name

    def translate(
        self,
        text: str,
        target_language: str,
        source_language: str | None = None,
    ) -> ProviderTranslation:
        translated = self._task(text, target_language=language_name(target_language))
        return ProviderTranslation(
            text=translated,
            detected_language=source_language,
            confidence=self.CONFIDENCE,
        )
