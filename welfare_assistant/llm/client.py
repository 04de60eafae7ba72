"""
LLM Client Module
Provides unified interface for different LLM providers
"""
import json
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when an LLM provider call fails at the transport level"""
    pass


class BaseLLMClient(ABC):
    """Base class for LLM clients"""

    @abstractmethod
    async def generate(self,
                      system_prompt: str,
                      user_message: str,
                      response_format: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.7) -> str:
        """Generate a response from the LLM"""
        pass


class OpenAIClient(BaseLLMClient):
    """
    OpenAI-compatible chat completions client.
    Also serves OpenRouter by pointing ``base_url`` at its API.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o", base_url: Optional[str] = None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate(self,
                      system_prompt: str,
                      user_message: str,
                      response_format: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.7) -> str:
        """Generate a response using the chat completions API"""
        client = self._get_client()

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message}
        ]

        kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature
        }

        if response_format and response_format.get("type") == "json_object":
            kwargs["response_format"] = {"type": "json_object"}

        try:
            create: Any = client.chat.completions.create
            response: Any = await create(**kwargs)
        except Exception as e:
            raise LLMError(f"chat completion failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicClient(BaseLLMClient):
    """Anthropic Claude API client"""

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-20241022"):
        self.api_key = api_key
        self.model = model
        self._client = None

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic
            self._client = AsyncAnthropic(api_key=self.api_key)
        return self._client

    async def generate(self,
                      system_prompt: str,
                      user_message: str,
                      response_format: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.7) -> str:
        """Generate a response using Claude"""
        client = self._get_client()

        # Add JSON instruction if needed
        if response_format and response_format.get("type") == "json_object":
            system_prompt += "\n\nIMPORTANT: Respond ONLY with valid JSON, no other text."

        try:
            create: Any = client.messages.create
            response: Any = await create(
                model=self.model,
                max_tokens=1024,
                system=system_prompt,
                messages=[
                    {"role": "user", "content": user_message}
                ],
                temperature=temperature
            )
        except Exception as e:
            raise LLMError(f"messages.create failed: {e}") from e

        for block in getattr(response, "content", []) or []:
            if getattr(block, "type", None) == "text" and hasattr(block, "text"):
                return block.text

        return ""


class OllamaClient(BaseLLMClient):
    """
    Ollama client for free local LLM inference.
    Requires Ollama to be installed and running locally.
    Install: https://ollama.ai/download
    Then run: ollama pull llama3.2
    """

    def __init__(self, base_url: str = "http://localhost:11434", model: str = "llama3.2"):
        self.base_url = base_url.rstrip('/')
        self.model = model

    async def generate(self,
                      system_prompt: str,
                      user_message: str,
                      response_format: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.7) -> str:
        """Generate a response using Ollama"""
        import aiohttp

        prompt = f"{system_prompt}\n\nUser: {user_message}\nAssistant:"

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature
            }
        }

        if response_format and response_format.get("type") == "json_object":
            payload["format"] = "json"

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/api/generate",
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=120)
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise LLMError(f"Ollama error {response.status}: {error_text}")

                    result = await response.json()
                    return result.get("response", "")
        except aiohttp.ClientError as e:
            raise LLMError(f"Ollama request failed: {e}") from e


class MockLLMClient(BaseLLMClient):
    """
    Mock LLM client for testing without API calls.
    Scripted replies are consumed in order; an Exception instance in the
    script is raised instead of returned. With an empty script the client
    answers ``{}`` for JSON requests and an empty string otherwise, which
    sends callers down their template fallbacks.
    """

    def __init__(self, responses: Optional[List[Union[str, Dict[str, Any], Exception]]] = None):
        self.responses: Deque[Union[str, Dict[str, Any], Exception]] = deque(responses or [])
        self.call_count = 0
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses: Union[str, Dict[str, Any], Exception]):
        self.responses.extend(responses)

    async def generate(self,
                      system_prompt: str,
                      user_message: str,
                      response_format: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.7) -> str:
        """Return the next scripted reply"""
        self.call_count += 1
        self.calls.append({
            "system_prompt": system_prompt,
            "user_message": user_message,
            "response_format": response_format,
        })

        if self.responses:
            reply = self.responses.popleft()
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, dict):
                return json.dumps(reply, ensure_ascii=False)
            return reply

        if response_format and response_format.get("type") == "json_object":
            return "{}"
        return ""


class LLMClientFactory:
    """Factory for creating LLM clients"""

    @staticmethod
    def create(provider: str = "mock", **kwargs) -> BaseLLMClient:
        """Create an LLM client based on provider"""
        providers = {
            "openai": OpenAIClient,
            "anthropic": AnthropicClient,
            "ollama": OllamaClient,
            "mock": MockLLMClient
        }

        if provider == "openrouter":
            kwargs.setdefault("base_url", "https://openrouter.ai/api/v1")
            return OpenAIClient(**kwargs)

        if provider not in providers:
            raise ValueError(f"Unknown LLM provider: {provider}")

        return providers[provider](**kwargs)

    @staticmethod
    def create_from_settings() -> BaseLLMClient:
        """Create LLM client from environment settings"""
        from ..config import settings, LLMProvider

        provider = settings.llm_provider

        if provider == LLMProvider.OPENROUTER and settings.openrouter_api_key:
            return OpenAIClient(
                api_key=settings.openrouter_api_key,
                model=settings.llm_model,
                base_url=settings.openrouter_base_url
            )
        if provider == LLMProvider.OPENAI and settings.openai_api_key:
            return OpenAIClient(api_key=settings.openai_api_key, model=settings.llm_model)
        if provider == LLMProvider.ANTHROPIC and settings.anthropic_api_key:
            return AnthropicClient(api_key=settings.anthropic_api_key, model=settings.llm_model)
        if provider == LLMProvider.OLLAMA:
            logger.info("Using Ollama with model %s at %s", settings.ollama_model, settings.ollama_base_url)
            return OllamaClient(base_url=settings.ollama_base_url, model=settings.ollama_model)

        if provider != LLMProvider.MOCK:
            logger.warning(
                "No API key configured for %s; falling back to the mock client "
                "(extraction disabled, template questions only)",
                provider.value
            )
        return MockLLMClient()
