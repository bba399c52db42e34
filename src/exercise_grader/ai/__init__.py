"""
Grading service providers.

Supports multiple AI backends:
- Google Gemini (native structured output)
- OpenAI and OpenAI-compatible endpoints (OpenRouter)

Usage:
    from exercise_grader.ai import create_ai_provider

    provider = create_ai_provider()
    result = provider.grade_exercise(image_bytes, "image/jpeg", language="vi")
"""

# Lazy imports keep SDK imports out of offline commands
__all__ = [
    "GeminiProvider",
    "OpenAIProvider",
    "create_ai_provider",
    "get_available_providers",
]


def GeminiProvider(*args, **kwargs):
    """Create a Gemini provider instance (lazy import)."""
    from .gemini_provider import GeminiProvider as _GeminiProvider
    return _GeminiProvider(*args, **kwargs)


def OpenAIProvider(*args, **kwargs):
    """Create an OpenAI provider instance (lazy import)."""
    from .openai_provider import OpenAIProvider as _OpenAIProvider
    return _OpenAIProvider(*args, **kwargs)


def create_ai_provider(*args, **kwargs):
    """Create a grading provider based on configuration (lazy import)."""
    from .provider_factory import create_ai_provider as _create_ai_provider
    return _create_ai_provider(*args, **kwargs)


def get_available_providers(*args, **kwargs):
    """Get list of providers with configured API keys (lazy import)."""
    from .provider_factory import get_available_providers as _get_available_providers
    return _get_available_providers(*args, **kwargs)
