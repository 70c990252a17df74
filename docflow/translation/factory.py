from docflow.analysis.chat_task import ChatTask
from docflow.analysis.factory import AnalysisEngineFactory
from docflow.analysis.prompt_loader import load_prompt_template
from docflow.analysis.retry import RetryPolicy
from docflow.config.settings import Settings
from docflow.translation.azure_translator_adapter import AzureTranslatorAdapter
from docflow.translation.client_base import BaseTranslationClient
from docflow.translation.engine import TranslationEngine
from docflow.translation.openai_translation_adapter import OpenAITranslationAdapter


class TranslationEngineFactory:
    """Creates the translation engine; Azure first, then OpenAI, then local."""

    @classmethod
    def create(cls, settings: Settings) -> TranslationEngine:
        clients: list[BaseTranslationClient] = []
        if settings.azure_translator_key:
            clients.append(
                AzureTranslatorAdapter(
                    api_key=settings.azure_translator_key,
                    endpoint=settings.azure_translator_endpoint,
                    region=settings.azure_translator_region,
                    timeout_seconds=settings.azure_timeout_seconds,
                )
            )
        chat_client = AnalysisEngineFactory.create_chat_client(settings)
        if chat_client is not None:
            clients.append(
                OpenAITranslationAdapter(
                    ChatTask(
                        client=chat_client,
                        model=settings.openai_model_name,
                        prompt_template=load_prompt_template("translation_prompt.txt"),
                        max_tokens=4000,
                        max_input_chars=settings.provider_max_chars,
                    )
                )
            )
        return TranslationEngine(
            clients,
            retry=RetryPolicy.from_settings(settings),
            max_provider_chars=settings.provider_max_chars,
        )
