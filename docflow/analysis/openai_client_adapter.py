import httpx
import openai

from docflow.analysis.client_base import BaseChatClient
from docflow.analysis.exceptions import ProviderError, ProviderNetworkError, ProviderResponseError


class OpenAIChatAdapter(BaseChatClient):
    """Chat client adapter built on the OpenAI-compatible chat API."""

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=messages,
            )
        except (
            openai.APIConnectionError,
            openai.RateLimitError,
            openai.InternalServerError,
            httpx.ConnectError,
            httpx.TimeoutException,
        ) as exc:
            raise ProviderNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise ProviderResponseError("AI returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ProviderResponseError("AI returned empty response")
        return content.strip()
