"""LLM provider factory.

Every stage talks to an OpenAI-compatible chat model with tool calling and
token streaming:
- OpenAI (default): Direct OpenAI API access
- OpenRouter, Together, Groq: OpenAI-compatible hosted APIs
- Ollama: Local models via the OpenAI-compatible endpoint
- Any OpenAI-compatible API: Set LLM_BASE_URL

Environment variables:
- LLM_PROVIDER: openai (default), openrouter, ollama, together, groq, custom
- LLM_MODEL: Model name (e.g., gpt-4o-mini, anthropic/claude-sonnet-4)
- LLM_API_KEY: API key for the provider
- LLM_BASE_URL: Custom base URL for OpenAI-compatible APIs
"""

from typing import Any

from langchain_core.language_models import BaseChatModel

from src.exceptions import LLMError
from src.settings import get_settings

# Provider base URLs
PROVIDER_BASE_URLS = {
    "openrouter": "https://openrouter.ai/api/v1",
    "openai": "https://api.openai.com/v1",
    "together": "https://api.together.xyz/v1",
    "groq": "https://api.groq.com/openai/v1",
    "ollama": "http://localhost:11434/v1",
}


def get_llm(
    temperature: float = 0.0,
    model: str | None = None,
    provider: str | None = None,
    streaming: bool = False,
    **kwargs: Any,
) -> BaseChatModel:
    """Get a chat model for the configured provider.

    Args:
        temperature: Sampling temperature for the calling stage
        model: Override default model name (``ollama/<name>`` selects Ollama)
        provider: Override default provider
        streaming: Stream tokens to callback handlers
        **kwargs: Additional ChatOpenAI arguments

    Returns:
        Configured chat model

    Raises:
        LLMError: If the provider is unknown or the API key is missing
    """
    from langchain_openai import ChatOpenAI

    settings = get_settings()
    model_name = model or settings.llm_model

    detected_provider = None
    if model_name.startswith("ollama/"):
        detected_provider = "ollama"
        model_name = model_name.split("/", 1)[1]

    provider = provider or detected_provider or settings.llm_provider

    api_key = settings.llm_api_key.get_secret_value()
    if not api_key and provider != "ollama":
        raise LLMError(f"LLM_API_KEY is required when using {provider} provider", provider=provider)

    base_url = settings.llm_base_url
    if base_url is None:
        base_url = PROVIDER_BASE_URLS.get(provider)
        if base_url is None:
            raise LLMError(
                f"Unknown provider '{provider}'. Set LLM_BASE_URL for custom providers.",
                provider=provider,
            )

    llm_kwargs: dict[str, Any] = {
        "model": model_name,
        "temperature": temperature,
        "streaming": streaming,
        "base_url": base_url,
        "api_key": api_key or "ollama",
        **kwargs,
    }

    # Add headers for OpenRouter
    if provider == "openrouter":
        llm_kwargs.setdefault("default_headers", {})
        llm_kwargs["default_headers"]["X-Title"] = "n8n Workflow Assistant"

    return ChatOpenAI(**llm_kwargs)


def list_supported_providers() -> list[str]:
    """List supported LLM providers.

    Returns:
        List of provider names
    """
    return [*PROVIDER_BASE_URLS, "custom"]
