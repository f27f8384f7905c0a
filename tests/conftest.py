"""
Pytest configuration and shared fixtures for Filler tests.
"""

import os

# Use LiteLLM's bundled model cost map instead of fetching it over the network
# at import time; the background retry thread races the import otherwise.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from filler.config.schema import Config
from filler.providers.base import (
    GenerationOptions,
    GenerationResult,
    LLMAdapter,
    TokenUsage,
)
from filler.providers.registry import ProviderRegistry
from filler.storage.local import LocalStorage


class FakeAdapter(LLMAdapter):
    """
    Scripted adapter.
    
    Each call pops the next reply. A reply may be a string (success), a
    GenerationResult, or an exception to raise.
    """
    
    provider_type = "fake"
    
    def __init__(self, replies=None):
        super().__init__()
        self.replies = list(replies or [])
        self.prompts: list[str] = []
        self.options: list[GenerationOptions] = []
    
    async def generate_response(self, prompt, options=None):
        self.prompts.append(prompt)
        self.options.append(options)
        reply = self.replies.pop(0) if self.replies else "generated"
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, GenerationResult):
            return reply
        return GenerationResult.ok(reply, TokenUsage(input=10, output=5, total=15))
    
    def list_available_models(self):
        return ["fake-model"]


@pytest.fixture
def workspace(tmp_path):
    """Create a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def templates_dir(workspace):
    """Create the templates folder in the workspace."""
    templates = workspace / "templates"
    templates.mkdir()
    return templates


@pytest.fixture
def storage(workspace):
    return LocalStorage(workspace)


@pytest.fixture
def config(workspace):
    """Config pointing at the temporary workspace, using the fake provider."""
    config = Config()
    config.paths.workspace = str(workspace)
    config.llm.provider = "fake"
    config.llm.api_key = "sk-test-key-1234567890"
    return config


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def registry(fake_adapter):
    """Registry whose 'fake' provider always returns the same adapter."""
    registry = ProviderRegistry()
    registry.register("fake", lambda: fake_adapter)
    return registry
