"""
Prompt optimizer.

Best-effort rewrite of a raw user instruction into a more specific one,
using the generation service itself. Any failure degrades to the original
instruction.
"""

import re

from loguru import logger

from filler.config.schema import Config
from filler.generation.service import GenerationService


OPTIMIZE_PROMPT = (
    "You help people write precise instructions for filling document templates.\n"
    "\n"
    "Template structure:\n"
    "{template}\n"
    "\n"
    "Original instruction:\n"
    "{instruction}\n"
    "\n"
    "Rewrite the original instruction so it is more specific about what each "
    "part of the template should contain. Reply with the improved instruction "
    "only, wrapped in double quotes."
)

# First quoted span, straight or curly quotes
_QUOTED = re.compile(r'"([^"]+)"|“([^”]+)”')

# Boilerplate lead-ins models like to open with, up to the first colon
_LEAD_IN = re.compile(
    r"^\s*(?:here's|here is|this is|i've created)[^:]*:\s*",
    re.IGNORECASE,
)


def clean_response(reply: str) -> str:
    """
    Extract the instruction from an optimizer reply.
    
    A quoted span wins. Otherwise the first non-empty line is used, with a
    leading "Here's ...:" style lead-in removed.
    """
    if not reply:
        return ""
    
    match = _QUOTED.search(reply)
    if match:
        return (match.group(1) or match.group(2)).strip()
    
    first_line = next((line for line in reply.splitlines() if line.strip()), "")
    return _LEAD_IN.sub("", first_line, count=1).strip()


class PromptOptimizer:
    """Rewrites user instructions before the final generation call."""
    
    def __init__(self, service: GenerationService, enabled: bool = True):
        self.service = service
        self.enabled = enabled
        self._in_flight = False
    
    def update_settings(self, config: Config) -> None:
        self.enabled = config.processing.use_prompt_optimization
    
    async def optimize(self, user_instruction: str, template_content: str) -> str:
        """
        Optimize the instruction if optimization is enabled.
        
        Args:
            user_instruction: The instruction as typed by the user.
            template_content: Content of the selected template.
        
        Returns:
            The improved instruction, or the original one when disabled,
            re-entered, or on any failure.
        """
        if not self.enabled:
            return user_instruction
        
        if self._in_flight:
            # Optimizer output never goes back through optimization
            logger.debug("Optimization already in flight; passing instruction through")
            return user_instruction
        
        self._in_flight = True
        try:
            prompt = OPTIMIZE_PROMPT.format(
                template=template_content.strip(),
                instruction=user_instruction.strip(),
            )
            reply = await self.service.generate(prompt)
            improved = clean_response(reply)
        except Exception as e:
            logger.warning(f"Prompt optimization failed, using original instruction: {e}")
            return user_instruction
        finally:
            self._in_flight = False
        
        if not improved:
            logger.debug("Optimizer returned nothing usable; using original instruction")
            return user_instruction
        
        logger.debug(f"Optimized instruction: {improved[:100]}")
        return improved
    
    def combine(self, template_content: str, final_instruction: str) -> str:
        """
        Combine template and instruction into the text handed to generation.
        
        The template itself travels separately inside the delimited fill
        prompt, so the instruction passes through unchanged.
        """
        return final_instruction
