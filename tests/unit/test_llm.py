"""Unit tests for the LLM provider factory."""

import pytest
from langchain_openai import ChatOpenAI

from src.exceptions import LLMError
from src.llm import PROVIDER_BASE_URLS, get_llm, list_supported_providers
from src.settings import get_settings


def _reload(monkeypatch, **env):
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()


class TestGetLLM:
    """Provider selection."""

    def test_default_openai(self):
        llm = get_llm(temperature=0.2)

        assert isinstance(llm, ChatOpenAI)
        assert llm.model_name == "gpt-4o-mini"
        assert llm.temperature == 0.2
        assert llm.openai_api_base == PROVIDER_BASE_URLS["openai"]

    def test_streaming_flag(self):
        assert get_llm(streaming=True).streaming is True

    def test_model_override(self):
        assert get_llm(model="gpt-4o").model_name == "gpt-4o"

    def test_openrouter_headers(self, monkeypatch):
        _reload(monkeypatch, LLM_PROVIDER="openrouter", LLM_MODEL="anthropic/claude-sonnet-4")

        llm = get_llm()

        assert llm.openai_api_base == PROVIDER_BASE_URLS["openrouter"]
        assert llm.default_headers["X-Title"] == "n8n Workflow Assistant"

    def test_ollama_prefix_needs_no_key(self, monkeypatch):
        _reload(monkeypatch, LLM_API_KEY="")

        llm = get_llm(model="ollama/llama3")

        assert llm.model_name == "llama3"
        assert llm.openai_api_base == PROVIDER_BASE_URLS["ollama"]

    def test_missing_key(self, monkeypatch):
        _reload(monkeypatch, LLM_API_KEY="")

        with pytest.raises(LLMError, match="LLM_API_KEY is required") as exc_info:
            get_llm()

        assert exc_info.value.provider == "openai"

    def test_custom_provider_needs_base_url(self, monkeypatch):
        _reload(monkeypatch, LLM_PROVIDER="custom")

        with pytest.raises(LLMError, match="Unknown provider"):
            get_llm()

    def test_custom_base_url(self, monkeypatch):
        _reload(monkeypatch, LLM_PROVIDER="custom", LLM_BASE_URL="http://llm.internal/v1")
        assert get_llm().openai_api_base == "http://llm.internal/v1"

    def test_supported_providers(self):
        assert list_supported_providers()[-1] == "custom"
        assert "ollama" in list_supported_providers()
