"""OpenRouter adapter."""

from filler import __version__
from filler.providers.completions import CompletionsAdapter


class OpenRouterAdapter(CompletionsAdapter):
    """OpenRouter completions API (https://openrouter.ai)."""
    
    provider_type = "openrouter"
    display_name = "OpenRouter"
    default_api_url = "https://openrouter.ai/api/v1/completions"
    default_model = "anthropic/claude-3.5-haiku"
    requires_api_key = True
    
    MODELS = [
        "anthropic/claude-3.5-haiku",
        "openai/gpt-4o-mini",
        "openai/gpt-4o",
    ]
    
    def build_headers(self) -> dict[str, str]:
        headers = super().build_headers()
        headers["X-Title"] = f"Filler {__version__}"  # OpenRouter app attribution
        return headers
