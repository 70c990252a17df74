from docflow.analysis.client_base import BaseChatClient


class ChatTask:
    """A prompt template bound to a chat client and model."""

    def __init__(
        self,
        *,
        client: BaseChatClient,
        model: str,
        prompt_template: str,
        system_prompt: str = "",
        temperature: float = 0.3,
        max_tokens: int = 150,
        max_input_chars: int = 4000,
    ) -> None:
        self._client = client
        self._model = model
        self._prompt_template = prompt_template
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_input_chars = max_input_chars

    @property
    def provider_name(self) -> str:
        return self._client.name

    def __call__(self, text: str, **fields: str) -> str:
        prompt = self._prompt_template.format(
            content=text[: self._max_input_chars], **fields
        )
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            max_tokens=self._max_tokens,
        )

