"""
Uniform chat-completion interface over the supported model providers.

Every provider exposes ``generate(messages)``, taking an ordered list of
``{"role": ..., "content": ...}`` messages and returning the completion text.
Credentials are checked when the model is created; no request is sent until
``generate`` is awaited.
"""
import abc
import contextlib
import logging
from typing import Dict, List, Optional

from aiolimiter import AsyncLimiter
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from po_validator.errors import ConfigurationError
from po_validator.models import (
    PROVIDER_ANTHROPIC,
    PROVIDER_OLLAMA,
    PROVIDER_OPENAI,
    ValidatorConfig
)

DEFAULT_OLLAMA_BASE_URL = 'http://localhost:11434'
DEFAULT_OLLAMA_MODEL = 'llama2'
DEFAULT_OPENAI_MODEL = 'gpt-3.5-turbo'
DEFAULT_ANTHROPIC_MODEL = 'claude-3-sonnet-20240229'

# Sampling settings shared by all providers. Reviews should be as
# deterministic as the provider allows.
REVIEW_TEMPERATURE = 0.1
ANTHROPIC_MAX_TOKENS = 4096

Message = Dict[str, str]

logger = logging.getLogger(__name__)


class ChatModel(abc.ABC):
    """Base class for a chat model bound to one provider and model name."""

    provider = ''

    def __init__(self, model_name: str, requests_per_minute: Optional[int] = None):
        self.model_name = model_name
        if requests_per_minute:
            self._rate_limiter = AsyncLimiter(max_rate=requests_per_minute, time_period=60)
        else:
            self._rate_limiter = None

    async def generate(self, messages: List[Message]) -> str:
        """
        Sends a conversation to the model and returns the completion text.

        Args:
            messages: Ordered role-tagged messages (system instruction first).

        Returns:
            The generated text, or an empty string if the model returned none.
        """
        limiter = self._rate_limiter or contextlib.nullcontext()
        async with limiter:
            logger.debug("Sending %d message(s) to %s model '%s'.",
                         len(messages), self.provider, self.model_name)
            return await self._complete(messages)

    @abc.abstractmethod
    async def _complete(self, messages: List[Message]) -> str:
        """Sends the request to the provider. Called inside the rate limiter."""


def _to_openai_messages(messages: List[Message]) -> List[ChatCompletionMessageParam]:
    converted: List[ChatCompletionMessageParam] = []
    for message in messages:
        if message['role'] == 'system':
            converted.append(ChatCompletionSystemMessageParam(role='system', content=message['content']))
        else:
            converted.append(ChatCompletionUserMessageParam(role='user', content=message['content']))
    return converted


class OpenAIChatModel(ChatModel):
    """Chat model served by the OpenAI chat completions API."""

    provider = PROVIDER_OPENAI

    def __init__(self, api_key: str, model_name: str = DEFAULT_OPENAI_MODEL,
                 base_url: Optional[str] = None, requests_per_minute: Optional[int] = None):
        super().__init__(model_name, requests_per_minute)
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _complete(self, messages: List[Message]) -> str:
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=_to_openai_messages(messages),
            temperature=REVIEW_TEMPERATURE,
        )
        return response.choices[0].message.content or ''


def ollama_openai_url(base_url: str) -> str:
    """Returns the OpenAI-compatible endpoint of an Ollama server, accepting URLs with or without /v1."""
    base_url = base_url.rstrip('/')
    if base_url.endswith('/v1'):
        base_url = base_url[:-len('/v1')]
    return f"{base_url}/v1"


class OllamaChatModel(OpenAIChatModel):
    """Chat model served by a local Ollama server through its OpenAI-compatible endpoint."""

    provider = PROVIDER_OLLAMA

    def __init__(self, base_url: str = DEFAULT_OLLAMA_BASE_URL, model_name: str = DEFAULT_OLLAMA_MODEL,
                 requests_per_minute: Optional[int] = None):
        self.base_url = base_url
        # Ollama ignores the key, but the OpenAI client refuses to start without one.
        super().__init__(
            api_key='ollama',
            model_name=model_name,
            base_url=ollama_openai_url(base_url),
            requests_per_minute=requests_per_minute,
        )


class AnthropicChatModel(ChatModel):
    """Chat model served by the Anthropic messages API."""

    provider = PROVIDER_ANTHROPIC

    def __init__(self, api_key: str, model_name: str = DEFAULT_ANTHROPIC_MODEL,
                 base_url: Optional[str] = None, requests_per_minute: Optional[int] = None):
        super().__init__(model_name, requests_per_minute)
        self.client = AsyncAnthropic(api_key=api_key, base_url=base_url)

    async def _complete(self, messages: List[Message]) -> str:
        # The messages API takes the system instruction as a separate parameter.
        system_prompt = '\n\n'.join(m['content'] for m in messages if m['role'] == 'system')
        conversation = [
            {'role': m['role'], 'content': m['content']}
            for m in messages if m['role'] != 'system'
        ]
        response = await self.client.messages.create(
            model=self.model_name,
            max_tokens=ANTHROPIC_MAX_TOKENS,
            temperature=REVIEW_TEMPERATURE,
            system=system_prompt,
            messages=conversation,
        )
        return ''.join(block.text for block in response.content if getattr(block, 'type', None) == 'text')


def create_chat_model(config: ValidatorConfig) -> ChatModel:
    """
    Creates the chat model selected by ``config.provider``.

    Args:
        config: The validator configuration.

    Returns:
        A ChatModel ready to be awaited.

    Raises:
        ConfigurationError: If the provider is unknown or a hosted provider has no API key.
    """
    if config.provider == PROVIDER_OLLAMA:
        return OllamaChatModel(
            base_url=config.base_url or DEFAULT_OLLAMA_BASE_URL,
            model_name=config.model_name or DEFAULT_OLLAMA_MODEL,
            requests_per_minute=config.requests_per_minute,
        )
    if config.provider == PROVIDER_ANTHROPIC:
        if not config.api_key:
            raise ConfigurationError("Anthropic API key is required")
        return AnthropicChatModel(
            api_key=config.api_key,
            model_name=config.model_name or DEFAULT_ANTHROPIC_MODEL,
            base_url=config.base_url,
            requests_per_minute=config.requests_per_minute,
        )
    if config.provider == PROVIDER_OPENAI:
        if not config.api_key:
            raise ConfigurationError("OpenAI API key is required")
        return OpenAIChatModel(
            api_key=config.api_key,
            model_name=config.model_name or DEFAULT_OPENAI_MODEL,
            base_url=config.base_url,
            requests_per_minute=config.requests_per_minute,
        )
    raise ConfigurationError(f"Unsupported provider: {config.provider}")
