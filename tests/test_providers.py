"""
Tests for LLM provider adapters and the registry.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from filler.config.schema import LLMConfig
from filler.providers.base import PROBE_PROMPT, GenerationOptions, TokenUsage
from filler.providers.lmstudio import LMStudioAdapter
from filler.providers.openrouter import OpenRouterAdapter
from filler.providers.registry import ProviderRegistry, get_provider_registry


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def completion_body(text="Filled document", usage=None):
    return {
        "choices": [{"text": text}],
        "usage": usage or {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20},
    }


class TestOpenRouterAdapter:
    """Tests for the OpenRouter completions adapter."""
    
    @pytest.mark.asyncio
    async def test_successful_request(self):
        captured = {}
        
        def handler(request: httpx.Request):
            captured["url"] = str(request.url)
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_body())
        
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key="sk-test"))
        
        result = await adapter.generate_response(
            "Fill this", GenerationOptions(temperature=0.3, max_tokens=50, model="openai/gpt-4o")
        )
        
        assert result.success
        assert result.text == "Filled document"
        assert result.token_usage == TokenUsage(input=12, output=8, total=20)
        assert captured["url"] == "https://openrouter.ai/api/v1/completions"
        assert captured["headers"]["authorization"] == "Bearer sk-test"
        assert captured["headers"]["x-title"].startswith("Filler ")
        assert captured["body"] == {
            "model": "openai/gpt-4o",
            "prompt": "Fill this",
            "temperature": 0.3,
            "max_tokens": 50,
            "stream": False,
        }
    
    @pytest.mark.asyncio
    async def test_custom_api_url(self):
        seen = []
        
        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=completion_body())
        
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure({"api_key": "k", "api_url": "https://proxy.test/v1/completions"})
        
        await adapter.generate_response("hi")
        
        assert seen == ["https://proxy.test/v1/completions"]
    
    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        handler = MagicMock()
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key=""))
        
        result = await adapter.generate_response("hi")
        
        assert not result.success
        assert result.error_message == "OpenRouter API key is not configured."
        handler.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_http_error_status(self):
        adapter = OpenRouterAdapter(
            client=make_client(lambda request: httpx.Response(401, json={"error": "bad key"}))
        )
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert not result.success
        assert result.error_message == "OpenRouter API Error: 401"
        assert result.token_usage == TokenUsage()
    
    @pytest.mark.asyncio
    async def test_no_choices(self):
        adapter = OpenRouterAdapter(
            client=make_client(lambda request: httpx.Response(200, json={"choices": []}))
        )
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert not result.success
        assert result.error_message == "No choices found in OpenRouter response."
    
    @pytest.mark.asyncio
    async def test_malformed_json(self):
        adapter = OpenRouterAdapter(
            client=make_client(lambda request: httpx.Response(200, content=b"<html>"))
        )
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert not result.success
        assert "malformed" in result.error_message
    
    @pytest.mark.asyncio
    async def test_missing_usage_defaults_to_zero(self):
        adapter = OpenRouterAdapter(
            client=make_client(lambda request: httpx.Response(200, json={"choices": [{"text": "x"}]}))
        )
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert result.success
        assert result.token_usage == TokenUsage(0, 0, 0)
    
    @pytest.mark.asyncio
    async def test_transport_error_is_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)
        
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert not result.success
        assert result.error_message.startswith("OpenRouter request failed")
    
    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)
        
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key="k"))
        
        result = await adapter.generate_response("hi")
        
        assert result.error_message == "OpenRouter request timed out."
    
    @pytest.mark.asyncio
    async def test_connection_probe(self):
        bodies = []
        
        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=completion_body("Hi"))
        
        adapter = OpenRouterAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key="k"))
        
        assert await adapter.test_connection() is True
        assert bodies[0]["prompt"] == PROBE_PROMPT
        assert bodies[0]["max_tokens"] == 10
    
    @pytest.mark.asyncio
    async def test_connection_probe_failure(self):
        adapter = OpenRouterAdapter(
            client=make_client(lambda request: httpx.Response(500))
        )
        adapter.configure(LLMConfig(api_key="k"))
        
        assert await adapter.test_connection() is False
    
    def test_catalog(self):
        adapter = OpenRouterAdapter()
        
        assert adapter.get_provider_type() == "openrouter"
        assert "anthropic/claude-3.5-haiku" in adapter.list_available_models()


class TestLMStudioAdapter:
    """Tests for the LM Studio adapter."""
    
    @pytest.mark.asyncio
    async def test_works_without_key(self):
        headers = []
        
        def handler(request):
            headers.append(request.headers)
            return httpx.Response(200, json=completion_body("local"))
        
        adapter = LMStudioAdapter(client=make_client(handler))
        adapter.configure(LLMConfig(api_key=""))
        
        result = await adapter.generate_response("hi")
        
        assert result.text == "local"
        assert "authorization" not in headers[0]
        assert adapter.api_url == "http://localhost:1234/v1/completions"


class TestLiteLLMAdapter:
    """Tests for the LiteLLM adapter."""
    
    @pytest.mark.asyncio
    async def test_generate(self):
        from filler.providers.litellm_provider import LiteLLMAdapter
        
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = "chat reply"
        response.usage.prompt_tokens = 3
        response.usage.completion_tokens = 4
        response.usage.total_tokens = 7
        
        adapter = LiteLLMAdapter()
        adapter.configure(LLMConfig(api_key="k"))
        
        with patch(
            "filler.providers.litellm_provider.acompletion",
            new=AsyncMock(return_value=response),
        ) as mock_completion:
            result = await adapter.generate_response("hi", GenerationOptions(model="openai/gpt-4o"))
        
        assert result.text == "chat reply"
        assert result.token_usage == TokenUsage(3, 4, 7)
        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["api_key"] == "k"
    
    @pytest.mark.asyncio
    async def test_exception_becomes_failure(self):
        from filler.providers.litellm_provider import LiteLLMAdapter
        
        adapter = LiteLLMAdapter()
        
        with patch(
            "filler.providers.litellm_provider.acompletion",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            result = await adapter.generate_response("hi")
        
        assert not result.success
        assert "boom" in result.error_message


class TestProviderRegistry:
    """Tests for provider registration."""
    
    def test_default_providers(self):
        names = get_provider_registry().names()
        
        assert {"openrouter", "lmstudio", "litellm"} <= set(names)
    
    def test_unknown_provider(self):
        assert ProviderRegistry().create("mystery") is None
        assert ProviderRegistry().create(None) is None
    
    def test_decorator_registration(self):
        registry = ProviderRegistry()
        
        @registry.provider("LMStudio")
        def make():
            return LMStudioAdapter()
        
        assert registry.is_registered("lmstudio")
        assert isinstance(registry.create("lmstudio"), LMStudioAdapter)
    
    def test_create_returns_fresh_instances(self):
        registry = ProviderRegistry()
        registry.register("openrouter", OpenRouterAdapter)
        
        assert registry.create("openrouter") is not registry.create("openrouter")
    
    def test_unregister(self):
        registry = ProviderRegistry()
        registry.register("openrouter", OpenRouterAdapter)
        
        assert registry.unregister("openrouter") is True
        assert registry.unregister("openrouter") is False
