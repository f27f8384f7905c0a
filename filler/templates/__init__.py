"""
Template handling for Filler.

Provides:
- Template discovery and caching (TemplateRepository)
- Output persistence (OutputWriter)
- Frontmatter helpers
"""

from filler.templates.repository import (
    Template,
    TemplateRepository,
    format_display_name,
)
from filler.templates.writer import OutputWriter, file_timestamp
from filler.templates.frontmatter import parse_frontmatter, render_frontmatter

__all__ = [
    "Template",
    "TemplateRepository",
    "format_display_name",
    "OutputWriter",
    "file_timestamp",
    "parse_frontmatter",
    "render_frontmatter",
]
