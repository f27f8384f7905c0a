"""
HTTP adapter for OpenAI-style text completion endpoints.

Request:  POST {api_url}  {model, prompt, temperature, max_tokens, stream: false}
Response: {choices: [{text}], usage: {prompt_tokens, completion_tokens, total_tokens}}
"""

from typing import Any

import httpx
from loguru import logger

from filler.providers.base import (
    GenerationOptions,
    GenerationResult,
    LLMAdapter,
    TokenUsage,
)


class CompletionsAdapter(LLMAdapter):
    """
    Base for backends that speak the plain completions protocol.
    
    Subclasses set provider_type, default_api_url, MODELS and whether an
    API key is required.
    """
    
    display_name: str = "Completions"
    requires_api_key: bool = True
    default_model: str = "default-model"
    MODELS: list[str] = []
    
    def __init__(self, client: httpx.AsyncClient | None = None):
        """
        Args:
            client: Optional shared HTTP client. When omitted, a short-lived
                    client is opened per request.
        """
        super().__init__()
        self._client = client
    
    def build_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers
    
    def build_payload(self, prompt: str, options: GenerationOptions) -> dict[str, Any]:
        """JSON body for one completion request."""
        return {
            "model": options.model or self.default_model,
            "prompt": prompt,
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "stream": False,
        }
    
    async def generate_response(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        options = options or GenerationOptions()
        
        if self.requires_api_key and not self.api_key:
            return GenerationResult.failure(
                f"{self.display_name} API key is not configured."
            )
        if not self.api_url:
            return GenerationResult.failure(
                f"{self.display_name} API URL is not configured."
            )
        
        payload = self.build_payload(prompt, options)
        logger.debug(
            f"{self.display_name} request: model={payload['model']}, "
            f"max_tokens={payload['max_tokens']}, prompt_chars={len(prompt)}"
        )
        
        try:
            response = await self._post(payload)
        except httpx.TimeoutException:
            return GenerationResult.failure(f"{self.display_name} request timed out.")
        except httpx.HTTPError as e:
            return GenerationResult.failure(f"{self.display_name} request failed: {e}")
        
        if response.status_code != 200:
            return GenerationResult.failure(
                f"{self.display_name} API Error: {response.status_code}"
            )
        
        return self._parse_response(response)
    
    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self.api_url, headers=self.build_headers(), json=payload,
                timeout=self.timeout,
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                self.api_url, headers=self.build_headers(), json=payload
            )
    
    def _parse_response(self, response: httpx.Response) -> GenerationResult:
        """Parse a 200 response into a GenerationResult."""
        try:
            data = response.json()
        except ValueError:
            return GenerationResult.failure(
                f"{self.display_name} returned a malformed response."
            )
        
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            return GenerationResult.failure(
                f"No choices found in {self.display_name} response."
            )
        
        first = choices[0] if isinstance(choices[0], dict) else {}
        text = first.get("text") or ""
        
        return GenerationResult.ok(
            text=text,
            token_usage=TokenUsage.from_usage(data.get("usage")),
        )
    
    def list_available_models(self) -> list[str]:
        return list(self.MODELS)
