"""Configuration schema using Pydantic."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


DEFAULT_PROMPT_TEMPLATE = (
    "Please fill out this template based on the following requirements:\n\n"
)


class LLMConfig(BaseModel):
    """LLM provider configuration."""
    provider: str = "openrouter"  # Key in the provider registry
    api_key: str = ""
    api_url: str | None = None  # Custom endpoint; adapter default when unset
    model: str = "anthropic/claude-3.5-haiku"
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=2048, gt=0)
    timeout: float = 60.0  # Seconds per HTTP request

    @property
    def has_api_key(self) -> bool:
        """Check whether an API key is set."""
        return bool(self.api_key.strip())

    def mask_api_key(self) -> str:
        """Return the API key in a form that is safe to log."""
        key = self.api_key
        if not key:
            return ""
        if len(key) > 12:
            return f"{key[:8]}...{key[-4:]}"
        return "***"


class PathsConfig(BaseModel):
    """File path configuration, relative to the workspace root."""
    workspace: str = "~/.filler/workspace"
    templates_path: str = "templates"
    output_path: str = ""  # Empty means the workspace root
    template_extension: str = "md"
    scan_interval_ms: int = Field(default=5000, ge=0)  # Template cache lifetime


class ProcessingConfig(BaseModel):
    """Template processing configuration."""
    use_prompt_optimization: bool = True
    default_prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    include_frontmatter: bool = False  # Prepend a frontmatter block to output
    inherit_template_tags: bool = True  # Copy template tags into that block


class Config(BaseSettings):
    """Root configuration for Filler."""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)

    @property
    def workspace_path(self) -> Path:
        """Get expanded workspace path."""
        return Path(self.paths.workspace).expanduser()

    class Config:
        env_prefix = "FILLER_"
        env_nested_delimiter = "__"
