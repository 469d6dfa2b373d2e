"""Chat-completion client for OpenAI-compatible LLM endpoints."""

import time
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import tiktoken

from groq import Groq
from openai import OpenAI

from ..core.config import LLMConfig, DEFAULT_LLM_ENDPOINT


logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM with metadata."""
    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    finish_reason: Optional[str] = None
    response_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


def _usage_count(usage: Any, name: str) -> Optional[int]:
    value = getattr(usage, name, None)
    return value if isinstance(value, int) else None


def _load_encoder(model: str):
    """Token encoder for counting; None means estimate from characters."""
    try:
        try:
            return tiktoken.encoding_for_model(model)
        except KeyError:
            return tiktoken.get_encoding("cl100k_base")
    except Exception as e:
        logger.warning(f"Token encoder unavailable, estimating token counts: {e}")
        return None


class LLMError(Exception):
    """Base exception for LLM client errors."""
    pass


class RateLimitError(LLMError):
    """Raised when rate limit is exceeded."""
    pass


class TokenLimitError(LLMError):
    """Raised when a prompt does not fit in the model context window."""
    pass


class LLMClient:
    """Client for an OpenAI-compatible chat completion API.

    The ``openai`` provider talks to any base URL that implements
    ``POST /chat/completions`` with bearer-token auth. The ``groq`` provider
    uses the Groq SDK, which speaks the same protocol.
    """

    def __init__(self,
                 api_key: str,
                 endpoint: Optional[str] = None,
                 model: str = "gpt-4o",
                 provider: str = "openai",
                 max_tokens: int = 2000,
                 temperature: float = 0.1,
                 timeout: int = 30,
                 max_retries: int = 3,
                 context_window: int = 128000):

        if not api_key:
            raise LLMError("LLM API key not provided")

        self.api_key = api_key
        self.endpoint = endpoint or DEFAULT_LLM_ENDPOINT
        self.model = model
        self.provider = provider
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.context_window = context_window

        self._requests_made = 0
        self._tokens_used = 0

        self.client = self._build_client()

        self.encoder = _load_encoder(model)

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        return cls(
            api_key=config.api_key,
            endpoint=config.endpoint,
            model=config.model,
            provider=config.provider,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
            context_window=config.context_window,
        )

    def _build_client(self):
        # SDK-level retries are disabled; tenacity owns retrying
        if self.provider == "groq":
            return Groq(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return OpenAI(api_key=self.api_key, base_url=self.endpoint, timeout=self.timeout, max_retries=0)

    def count_tokens(self, text: str) -> int:
        """Count tokens in text."""
        if self.encoder is None:
            return len(text) // 4
        try:
            return len(self.encoder.encode(text, disallowed_special=()))
        except Exception as e:
            logger.warning(f"Failed to count tokens: {e}")
            # Fallback estimation: ~4 chars per token
            return len(text) // 4

    def count_message_tokens(self, messages: List[Dict[str, str]]) -> int:
        """Count tokens in a list of messages."""
        total_tokens = 0

        for message in messages:
            total_tokens += self.count_tokens(message.get("role", ""))
            total_tokens += self.count_tokens(message.get("content", ""))
            total_tokens += 4  # Overhead per message

        total_tokens += 2  # Overhead for the conversation
        return total_tokens

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((RateLimitError, ConnectionError)),
        reraise=True,
    )
    def _make_request(self, messages: List[Dict[str, str]], max_tokens: int, temperature: float):
        """Make a request to the chat completion API with retries."""
        try:
            return self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            error_msg = str(e).lower()
            if 'rate limit' in error_msg or 'too many requests' in error_msg or '429' in error_msg:
                raise RateLimitError(f"Rate limit exceeded: {e}")
            elif 'timeout' in error_msg or 'timed out' in error_msg:
                raise ConnectionError(f"Request timeout: {e}")
            else:
                raise LLMError(f"LLM API request failed: {e}")

    def chat_completion(self,
                        messages: List[Dict[str, str]],
                        max_tokens: Optional[int] = None,
                        temperature: Optional[float] = None) -> LLMResponse:
        """Send a chat completion request."""
        start_time = time.time()

        if not messages:
            raise ValueError("Messages cannot be empty")

        max_tokens = max_tokens or self.max_tokens
        temperature = self.temperature if temperature is None else temperature

        input_tokens = self.count_message_tokens(messages)
        if input_tokens + max_tokens > self.context_window:
            raise TokenLimitError(
                f"Total tokens ({input_tokens + max_tokens}) exceed model limit ({self.context_window})"
            )

        try:
            response = self._make_request(messages, max_tokens, temperature)
        except (RateLimitError, ConnectionError) as e:
            raise LLMError(f"LLM API request failed after retries: {e}") from e

        choice = response.choices[0]
        content = choice.message.content or ""
        usage = getattr(response, 'usage', None)

        prompt_tokens = _usage_count(usage, 'prompt_tokens') or input_tokens
        completion_tokens = _usage_count(usage, 'completion_tokens') or self.count_tokens(content)
        total_tokens = _usage_count(usage, 'total_tokens') or prompt_tokens + completion_tokens

        self._requests_made += 1
        self._tokens_used += total_tokens

        response_time = time.time() - start_time
        logger.debug(
            f"LLM request completed: {prompt_tokens} input tokens, "
            f"{completion_tokens} output tokens, {response_time:.2f}s"
        )

        return LLMResponse(
            content=content,
            model=self.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            finish_reason=choice.finish_reason,
            response_time=response_time,
            metadata={'provider': self.provider, 'endpoint': self.endpoint},
        )

    def simple_completion(self, prompt: str, **kwargs) -> str:
        """Single user-message completion returning only the text."""
        messages = [{"role": "user", "content": prompt}]
        return self.chat_completion(messages, **kwargs).content

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics for this invocation."""
        return {
            'provider': self.provider,
            'endpoint': self.endpoint,
            'model': self.model,
            'total_requests': self._requests_made,
            'total_tokens': self._tokens_used,
        }
