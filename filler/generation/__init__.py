"""Text generation: the provider-facing service and the prompt optimizer."""

from filler.generation.service import GenerationService, build_fill_prompt
from filler.generation.optimizer import PromptOptimizer, clean_response

__all__ = [
    "GenerationService",
    "build_fill_prompt",
    "PromptOptimizer",
    "clean_response",
]
