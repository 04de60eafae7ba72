"""
Tests for LLM client selection and logging setup
"""
import logging

import pytest
from rich.logging import RichHandler

from welfare_assistant.config import LLMProvider, settings
from welfare_assistant.llm import LLMClientFactory, MockLLMClient, OllamaClient, OpenAIClient
from welfare_assistant.logging_config import setup_logging


class TestFactory:
    def test_openrouter_uses_openai_compatible_client(self):
        client = LLMClientFactory.create("openrouter", api_key="key", model="google/gemini-2.0-flash-001")
        assert isinstance(client, OpenAIClient)
        assert client.base_url == "https://openrouter.ai/api/v1"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            LLMClientFactory.create("carrier-pigeon")

    def test_missing_key_falls_back_to_mock(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", LLMProvider.OPENROUTER)
        monkeypatch.setattr(settings, "openrouter_api_key", None)
        assert isinstance(LLMClientFactory.create_from_settings(), MockLLMClient)

    def test_configured_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", LLMProvider.OLLAMA)
        monkeypatch.setattr(settings, "ollama_model", "qwen2.5")
        client = LLMClientFactory.create_from_settings()
        assert isinstance(client, OllamaClient)
        assert client.model == "qwen2.5"


class TestMockClient:
    async def test_scripted_replies_then_defaults(self):
        llm = MockLLMClient(["first"])
        assert await llm.generate("sys", "hi") == "first"
        assert await llm.generate("sys", "hi") == ""
        assert await llm.generate("sys", "hi", response_format={"type": "json_object"}) == "{}"
        assert llm.call_count == 3


class TestLogging:
    def test_plain_handler(self):
        root = setup_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0], RichHandler)

    def test_rich_handler(self):
        root = setup_logging(logging.WARNING, use_rich=True)
        assert isinstance(root.handlers[0], RichHandler)

    def test_unknown_level_defaults_to_info(self):
        assert setup_logging("chatty").level == logging.INFO
