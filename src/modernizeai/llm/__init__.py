"""LLM integration module for ModernizeAI."""

from .client import LLMClient, LLMResponse, LLMError, RateLimitError, TokenLimitError
from .parsing import extract_json_object, parse_llm_json

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMError",
    "RateLimitError",
    "TokenLimitError",
    "extract_json_object",
    "parse_llm_json",
]
