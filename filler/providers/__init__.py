"""LLM provider adapters."""

from filler.providers.base import (
    GenerationOptions,
    GenerationResult,
    LLMAdapter,
    TokenUsage,
)
from filler.providers.completions import CompletionsAdapter
from filler.providers.openrouter import OpenRouterAdapter
from filler.providers.lmstudio import LMStudioAdapter
from filler.providers.registry import (
    ProviderRegistry,
    get_provider_registry,
    register_adapter,
)

__all__ = [
    "GenerationOptions",
    "GenerationResult",
    "LLMAdapter",
    "TokenUsage",
    "CompletionsAdapter",
    "OpenRouterAdapter",
    "LMStudioAdapter",
    "ProviderRegistry",
    "get_provider_registry",
    "register_adapter",
]
