"""LiteLLM adapter for multi-provider chat models."""

from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from filler.providers.base import (
    GenerationOptions,
    GenerationResult,
    LLMAdapter,
    TokenUsage,
)


class LiteLLMAdapter(LLMAdapter):
    """
    Adapter that routes prompts through LiteLLM.
    
    The model name selects the backend (e.g. 'anthropic/claude-3-5-haiku',
    'openai/gpt-4o-mini', 'ollama/llama3'). The prompt is sent as a single
    user message.
    """
    
    provider_type = "litellm"
    default_model = "openai/gpt-4o-mini"
    
    MODELS = [
        "openai/gpt-4o-mini",
        "openai/gpt-4o",
        "anthropic/claude-3-5-haiku-latest",
        "deepseek/deepseek-chat",
        "ollama/llama3",
    ]
    
    def __init__(self):
        super().__init__()
        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
    
    async def generate_response(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        options = options or GenerationOptions()
        
        kwargs: dict[str, Any] = {
            "model": options.model or self.default_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_url:
            kwargs["api_base"] = self.api_url
        
        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            logger.debug(f"LiteLLM call failed: {e}")
            return GenerationResult.failure(f"LiteLLM request failed: {e}")
        
        return self._parse_response(response)
    
    def _parse_response(self, response: Any) -> GenerationResult:
        """Parse LiteLLM response into a GenerationResult."""
        choices = getattr(response, "choices", None)
        if not choices:
            return GenerationResult.failure("No choices found in LiteLLM response.")
        
        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None) or ""
        
        usage = TokenUsage()
        if getattr(response, "usage", None):
            usage = TokenUsage(
                input=getattr(response.usage, "prompt_tokens", 0) or 0,
                output=getattr(response.usage, "completion_tokens", 0) or 0,
                total=getattr(response.usage, "total_tokens", 0) or 0,
            )
        
        return GenerationResult.ok(text=text, token_usage=usage)
    
    def list_available_models(self) -> list[str]:
        return list(self.MODELS)
