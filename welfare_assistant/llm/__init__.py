"""
LLM Package
Contains LLM client implementations
"""
from .client import (
    BaseLLMClient,
    OpenAIClient,
    AnthropicClient,
    OllamaClient,
    MockLLMClient,
    LLMClientFactory,
    LLMError
)

__all__ = [
    "BaseLLMClient",
    "OpenAIClient",
    "AnthropicClient",
    "OllamaClient",
    "MockLLMClient",
    "LLMClientFactory",
    "LLMError"
]
