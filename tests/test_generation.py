"""
Tests for the generation service and prompt optimizer.
"""

import pytest
from unittest.mock import AsyncMock

from filler.errors import GenerationError, ProviderNotConfiguredError
from filler.generation.optimizer import PromptOptimizer, clean_response
from filler.generation.service import (
    INSTRUCTIONS_END,
    INSTRUCTIONS_START,
    TEMPLATE_END,
    TEMPLATE_START,
    GenerationService,
    build_fill_prompt,
)
from filler.notifications import NoticeLevel, RecordingNotifier
from filler.providers.base import GenerationResult
from filler.providers.registry import ProviderRegistry


class TestBuildFillPrompt:
    """Tests for the delimited fill prompt."""
    
    def test_contains_template_and_instruction_in_order(self):
        prompt = build_fill_prompt("# Title\n{{body}}", "Write about cats", lead_in="Please fill:")
        
        assert prompt.startswith("Please fill:")
        assert prompt.index(TEMPLATE_START) < prompt.index("# Title\n{{body}}") < prompt.index(TEMPLATE_END)
        assert prompt.index(INSTRUCTIONS_START) < prompt.index("Write about cats") < prompt.index(INSTRUCTIONS_END)
        assert prompt.index(TEMPLATE_END) < prompt.index(INSTRUCTIONS_START)
    
    def test_blank_lead_in_is_omitted(self):
        assert build_fill_prompt("T", "I").startswith(TEMPLATE_START)


class TestGenerationService:
    """Tests for adapter selection and generation."""
    
    def test_unknown_provider_warns(self, config):
        config.llm.provider = "mystery"
        notifier = RecordingNotifier()
        
        service = GenerationService(config, registry=ProviderRegistry(), notifier=notifier)
        
        assert service.adapter is None
        assert not service.is_ready
        assert service.configuration_warning == "Unsupported LLM provider: mystery"
        assert notifier.messages(NoticeLevel.WARNING) == ["Unsupported LLM provider: mystery"]
    
    @pytest.mark.asyncio
    async def test_generate_without_adapter(self, config):
        config.llm.provider = "mystery"
        service = GenerationService(config, registry=ProviderRegistry(), notifier=RecordingNotifier())
        
        with pytest.raises(ProviderNotConfiguredError):
            await service.generate("hi")
    
    def test_adapter_configured_from_settings(self, config, registry, fake_adapter):
        service = GenerationService(config, registry=registry)
        
        assert service.adapter is fake_adapter
        assert fake_adapter.api_key == "sk-test-key-1234567890"
    
    @pytest.mark.asyncio
    async def test_generate_passes_options_and_trims(self, config, registry, fake_adapter):
        config.llm.model = "some/model"
        config.llm.max_tokens = 321
        fake_adapter.replies = ["  filled text \n"]
        service = GenerationService(config, registry=registry)
        
        text = await service.generate("prompt")
        
        assert text == "filled text"
        assert fake_adapter.options[0].model == "some/model"
        assert fake_adapter.options[0].max_tokens == 321
        assert fake_adapter.options[0].temperature == 0.7
    
    @pytest.mark.asyncio
    async def test_generate_failure_raises(self, config, registry, fake_adapter):
        fake_adapter.replies = [GenerationResult.failure("OpenRouter API Error: 500")]
        service = GenerationService(config, registry=registry)
        
        with pytest.raises(GenerationError, match="API Error: 500"):
            await service.generate("prompt")
    
    @pytest.mark.asyncio
    async def test_empty_text_raises(self, config, registry, fake_adapter):
        fake_adapter.replies = ["   "]
        service = GenerationService(config, registry=registry)
        
        with pytest.raises(GenerationError):
            await service.generate("prompt")
    
    @pytest.mark.asyncio
    async def test_generate_filled_template_builds_prompt(self, config, registry, fake_adapter):
        service = GenerationService(config, registry=registry)
        
        await service.generate_filled_template("Hello {{input}}", "say hi to Bob")
        
        prompt = fake_adapter.prompts[0]
        assert "Hello {{input}}" in prompt
        assert "say hi to Bob" in prompt
        assert prompt.startswith("Please fill out this template")
    
    @pytest.mark.asyncio
    async def test_usage_stats(self, config, registry, fake_adapter):
        fake_adapter.replies = ["a", "b"]
        service = GenerationService(config, registry=registry)
        
        await service.generate("1")
        await service.generate("2")
        stats = service.get_usage_stats()
        
        assert stats["request_count"] == 2
        assert stats["total_tokens"] == 30
        
        service.reset_usage_stats()
        assert service.get_usage_stats()["request_count"] == 0
    
    def test_update_settings_rebuilds_adapter(self, config, registry):
        service = GenerationService(config, registry=registry, notifier=RecordingNotifier())
        new_config = config.model_copy(deep=True)
        new_config.llm.provider = "gone"
        
        service.update_settings(new_config)
        
        assert service.adapter is None
        assert service.get_available_models() == []
    
    @pytest.mark.asyncio
    async def test_test_connection_notifies(self, config, registry, fake_adapter):
        notifier = RecordingNotifier()
        service = GenerationService(config, registry=registry, notifier=notifier)
        fake_adapter.test_connection = AsyncMock(return_value=False)
        
        assert await service.test_connection() is False
        assert notifier.messages(NoticeLevel.ERROR) == ["fake connection failed."]


class TestCleanResponse:
    """Tests for optimizer reply cleaning."""
    
    def test_quoted_span_wins(self):
        reply = 'Here is the improved instruction:\n"Write a weekly report covering sales."'
        
        assert clean_response(reply) == "Write a weekly report covering sales."
    
    def test_curly_quotes(self):
        assert clean_response("“Summarize the meeting”") == "Summarize the meeting"
    
    def test_lead_in_removed(self):
        assert clean_response("Here's a better version: List the attendees") == "List the attendees"
    
    def test_first_non_empty_line(self):
        assert clean_response("\n\nDescribe the project\nExtra commentary") == "Describe the project"
    
    def test_empty(self):
        assert clean_response("") == ""
    
    @pytest.mark.parametrize("reply,expected", [
        ("Here's a prompt: \"Write a haiku about rain\"", "Write a haiku about rain"),
        ("This is the plan: do X then Y", "do X then Y"),
        ("I've created an instruction: Describe each decision", "Describe each decision"),
        ("HERE IS the result: Summarize the call", "Summarize the call"),
    ])
    def test_documented_examples(self, reply, expected):
        assert clean_response(reply) == expected
    
    def test_lead_in_only_stripped_at_start(self):
        assert clean_response("List items. This is key: be brief") == "List items. This is key: be brief"


class TestPromptOptimizer:
    """Tests for instruction optimization."""
    
    @pytest.mark.asyncio
    async def test_disabled_is_identity(self):
        service = AsyncMock()
        optimizer = PromptOptimizer(service, enabled=False)
        
        assert await optimizer.optimize("raw", "template") == "raw"
        service.generate.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_optimizes_through_service(self):
        service = AsyncMock()
        service.generate.return_value = 'Sure: "Write a detailed agenda"'
        optimizer = PromptOptimizer(service)
        
        result = await optimizer.optimize("agenda", "# Agenda")
        
        assert result == "Write a detailed agenda"
        prompt = service.generate.call_args.args[0]
        assert "# Agenda" in prompt
        assert "agenda" in prompt
    
    @pytest.mark.asyncio
    async def test_failure_returns_original(self):
        service = AsyncMock()
        service.generate.side_effect = GenerationError("down")
        optimizer = PromptOptimizer(service)
        
        assert await optimizer.optimize("raw", "template") == "raw"
    
    @pytest.mark.asyncio
    async def test_unexpected_error_returns_original(self):
        service = AsyncMock()
        service.generate.side_effect = RuntimeError("bug")
        optimizer = PromptOptimizer(service)
        
        assert await optimizer.optimize("raw", "template") == "raw"
    
    @pytest.mark.asyncio
    async def test_empty_cleaned_reply_returns_original(self):
        service = AsyncMock()
        service.generate.return_value = "\n  \n"
        optimizer = PromptOptimizer(service)
        
        assert await optimizer.optimize("raw", "template") == "raw"
    
    @pytest.mark.asyncio
    async def test_no_recursive_optimization(self):
        optimizer = PromptOptimizer(AsyncMock())
        
        async def nested(prompt):
            return await optimizer.optimize("inner", "template")
        
        optimizer.service.generate.side_effect = nested
        
        # The nested call passes "inner" straight through
        assert await optimizer.optimize("outer", "template") == "inner"
        assert optimizer.service.generate.call_count == 1
    
    def test_combine_passes_instruction_through(self):
        optimizer = PromptOptimizer(AsyncMock())
        
        assert optimizer.combine("template", "instruction") == "instruction"
    
    def test_update_settings(self, config):
        optimizer = PromptOptimizer(AsyncMock())
        config.processing.use_prompt_optimization = False
        optimizer.update_settings(config)
        
        assert optimizer.enabled is False
