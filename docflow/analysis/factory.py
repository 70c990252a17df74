from docflow.analysis.azure_text_analytics_adapter import AzureTextAnalyticsAdapter
from docflow.analysis.chat_task import ChatTask
from docflow.analysis.client_base import BaseChatClient, BaseTextAnalyticsClient
from docflow.analysis.engine import AnalysisEngine
from docflow.analysis.heuristics import basic_entities, basic_key_phrases, basic_sentiment
from docflow.analysis.openai_client_adapter import OpenAIChatAdapter
from docflow.analysis.outcome import FacetChain, FacetProvider
from docflow.analysis.prompt_loader import load_prompt_template
from docflow.analysis.retry import RetryPolicy
from docflow.config.settings import Settings
from docflow.logging.logger import Log


class AnalysisEngineFactory:
    """Creates the analysis engine with every provider configured in settings."""

    @classmethod
    def create(cls, settings: Settings) -> AnalysisEngine:
        return cls.build(
            settings,
            text_analytics=cls.create_text_analytics_client(settings),
            chat_client=cls.create_chat_client(settings),
        )

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        text_analytics: BaseTextAnalyticsClient | None,
        chat_client: BaseChatClient | None,
        retry: RetryPolicy | None = None,
    ) -> AnalysisEngine:
        """Wire an engine from explicit clients; either may be None."""
        retry = retry or RetryPolicy.from_settings(settings)
        sentiment_providers = []
        key_phrase_providers = []
        entity_providers = []
        if text_analytics is not None:
            sentiment_providers.append(
                FacetProvider(text_analytics.name, text_analytics.analyze_sentiment)
            )
            key_phrase_providers.append(
                FacetProvider(text_analytics.name, text_analytics.extract_key_phrases)
            )
            entity_providers.append(
                FacetProvider(text_analytics.name, text_analytics.recognize_entities)
            )

        summary_task = insights_task = None
        if chat_client is not None:
            summary_task = ChatTask(
                client=chat_client,
                model=settings.openai_model_name,
                prompt_template=load_prompt_template("summary_prompt.txt"),
                max_tokens=150,
                max_input_chars=settings.provider_max_chars,
            )
            insights_task = ChatTask(
                client=chat_client,
                model=settings.openai_model_name,
                prompt_template=load_prompt_template("insights_prompt.txt"),
                system_prompt=load_prompt_template("insights_system_prompt.txt").strip(),
                max_tokens=1000,
                max_input_chars=settings.provider_max_chars,
            )

        return AnalysisEngine(
            sentiment=FacetChain("sentiment", sentiment_providers, basic_sentiment, retry),
            key_phrases=FacetChain("key_phrases", key_phrase_providers, basic_key_phrases, retry),
            entities=FacetChain("entities", entity_providers, basic_entities, retry),
            summary_task=summary_task,
            insights_task=insights_task,
            retry=retry,
            summary_min_chars=settings.summary_min_chars,
        )

    @classmethod
    def create_text_analytics_client(cls, settings: Settings) -> BaseTextAnalyticsClient | None:
        if not (settings.azure_text_analytics_key and settings.azure_text_analytics_endpoint):
            Log.info("Azure Text Analytics not configured; using local heuristics")
            return None
        return AzureTextAnalyticsAdapter(
            api_key=settings.azure_text_analytics_key,
            endpoint=settings.azure_text_analytics_endpoint,
            timeout_seconds=settings.azure_timeout_seconds,
        )

    @classmethod
    def create_chat_client(cls, settings: Settings) -> BaseChatClient | None:
        if not settings.openai_api_key:
            Log.info("OpenAI not configured; summaries and insights use local fallbacks")
            return None
        return OpenAIChatAdapter(
            api_key=settings.openai_api_key,
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=settings.openai_base_url,
        )
