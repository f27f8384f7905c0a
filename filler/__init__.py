"""
Filler - fill reusable document templates with an LLM.
"""

__version__ = "0.1.0"
__logo__ = "📝"
