"""Base adapter contract for generative text backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


PROBE_PROMPT = "Hello, this is a test prompt."


@dataclass
class TokenUsage:
    """Token counts reported by a provider."""
    input: int = 0
    output: int = 0
    total: int = 0
    
    @classmethod
    def from_usage(cls, usage: Any) -> "TokenUsage":
        """Build from an OpenAI-style usage mapping, defaulting missing counts to 0."""
        if not isinstance(usage, dict):
            return cls()
        return cls(
            input=_as_int(usage.get("prompt_tokens")),
            output=_as_int(usage.get("completion_tokens")),
            total=_as_int(usage.get("total_tokens")),
        )


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class GenerationOptions:
    """Per-call generation parameters."""
    temperature: float = 0.7
    max_tokens: int = 1000
    model: str = ""


@dataclass
class GenerationResult:
    """
    Outcome of a single adapter call.
    
    Exactly one of text (success) or error_message (failure) is meaningful.
    """
    success: bool
    text: str | None = None
    error_message: str | None = None
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    
    @classmethod
    def ok(cls, text: str, token_usage: TokenUsage | None = None) -> "GenerationResult":
        return cls(success=True, text=text, token_usage=token_usage or TokenUsage())
    
    @classmethod
    def failure(cls, error_message: str) -> "GenerationResult":
        return cls(success=False, error_message=error_message)


class LLMAdapter(ABC):
    """
    Uniform interface to one generative-text backend.
    
    Implementations MUST NOT let transport or parse errors escape from
    generate_response; they are reported as failed GenerationResults.
    """
    
    provider_type: str = ""
    default_api_url: str | None = None

    def __init__(self):
        self.api_key = ""
        self.api_url: str | None = self.default_api_url
        self.timeout = 60.0
    
    def configure(self, settings: Any) -> None:
        """
        Store credentials and endpoint. No I/O.
        
        Args:
            settings: An LLMConfig, or any object/dict with api_key,
                      api_url and timeout.
        """
        get = settings.get if isinstance(settings, dict) else (
            lambda key, default=None: getattr(settings, key, default)
        )
        self.api_key = get("api_key", "") or ""
        self.api_url = get("api_url", None) or self.default_api_url
        self.timeout = float(get("timeout", self.timeout) or self.timeout)
    
    @abstractmethod
    async def generate_response(
        self,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """Send one prompt and return the result."""
    
    async def test_connection(self) -> bool:
        """Probe the backend with a tiny request."""
        try:
            result = await self.generate_response(
                PROBE_PROMPT, GenerationOptions(max_tokens=10)
            )
        except Exception:
            return False
        return result.success and bool(result.text)
    
    def get_provider_type(self) -> str:
        """Get the provider identifier."""
        return self.provider_type
    
    @abstractmethod
    def list_available_models(self) -> list[str]:
        """Get the static catalog of model identifiers for this provider."""
