"""LM Studio adapter for a locally hosted OpenAI-compatible server."""

from filler.providers.completions import CompletionsAdapter


class LMStudioAdapter(CompletionsAdapter):
    """LM Studio local server. No API key needed."""
    
    provider_type = "lmstudio"
    display_name = "LM Studio"
    default_api_url = "http://localhost:1234/v1/completions"
    default_model = "default"
    requires_api_key = False
    
    MODELS = ["default"]
