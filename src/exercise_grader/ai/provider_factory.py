"""
Factory for creating grading provider instances.

Uses registry-based configuration for easy extensibility.
"""

from typing import List

from exercise_grader.ai.base_provider import BaseProvider
from exercise_grader.ai.gemini_provider import GeminiProvider
from exercise_grader.ai.openai_provider import OpenAIProvider
from exercise_grader.config.providers import PROVIDER_REGISTRY, get_provider_config
from exercise_grader.config.settings import get_settings
from exercise_grader.core.exceptions import ConfigurationError, MissingAPIKeyError


def create_ai_provider(
    provider_type: str = None,
    model: str = None,
    mock_mode: bool = False
) -> BaseProvider:
    """
    Create a grading provider instance.

    Args:
        provider_type: Provider name (default: from settings)
        model: Override model name
        mock_mode: Skip API key validation and return canned results

    Returns:
        Provider instance
    """
    settings = get_settings()
    provider_type = (provider_type or settings.ai_provider).lower()

    if provider_type not in PROVIDER_REGISTRY:
        raise ConfigurationError(
            f"Unknown provider: {provider_type}. Available: {list(PROVIDER_REGISTRY.keys())}"
        )

    config = get_provider_config(provider_type, settings)

    if model:
        config.model = model

    # Validate API key
    if not config.api_key and not mock_mode:
        raise MissingAPIKeyError(
            f"API key required for {provider_type}. Set EXERCISE_GRADER_{provider_type.upper()}_API_KEY"
        )

    # Validate model
    if not config.model and not mock_mode:
        raise ConfigurationError(
            f"Model required for {provider_type}. Set EXERCISE_GRADER_{provider_type.upper()}_MODEL"
        )

    # Gemini uses native client
    if PROVIDER_REGISTRY[provider_type].get("requires_native"):
        return GeminiProvider(
            api_key=config.api_key,
            model=config.model,
            thinking_budget=settings.thinking_budget,
            mock_mode=mock_mode
        )

    # All other providers use OpenAI-compatible API
    return OpenAIProvider(
        api_key=config.api_key,
        model=config.model,
        base_url=config.base_url,
        name=f"{provider_type}/{config.model}",
        mock_mode=mock_mode,
        extra_headers=config.extra_headers,
    )


def get_available_providers() -> List[str]:
    """Get providers with configured API keys."""
    settings = get_settings()
    return [
        name for name in PROVIDER_REGISTRY
        if get_provider_config(name, settings).api_key
    ]
