"""
Minimal frontmatter support for markdown templates.

Handles the subset templates actually use: `key: value` pairs, quoted
strings, inline `[a, b]` lists and indented `- item` lists.
"""

import re
from typing import Any


_BLOCK = re.compile(r"^---\r?\n(.*?)\r?\n---\r?\n?", re.DOTALL)


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """
    Parse frontmatter from markdown content.
    
    Args:
        content: Full markdown content, with or without frontmatter.
    
    Returns:
        Tuple of (frontmatter_dict, body_content).
    """
    if not content.startswith("---"):
        return {}, content
    
    match = _BLOCK.match(content)
    if not match:
        return {}, content
    
    frontmatter: dict[str, Any] = {}
    current_key: str | None = None
    current_list: list[str] = []
    
    for line in match.group(1).splitlines():
        line = line.rstrip()
        stripped = line.lstrip()
        
        # List item belonging to the previous key
        if stripped.startswith("- ") and current_key:
            current_list.append(_unquote(stripped[2:].strip()))
            continue
        
        if current_key is not None:
            frontmatter[current_key] = current_list
            current_key, current_list = None, []
        
        if ":" not in line or line.startswith("#"):
            continue
        
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip()
        
        if not value:
            # Value on next lines (a list)
            current_key = key
        elif value.startswith("[") and value.endswith("]"):
            items = [_unquote(v.strip()) for v in value[1:-1].split(",")]
            frontmatter[key] = [v for v in items if v]
        else:
            frontmatter[key] = _unquote(value)
    
    if current_key is not None:
        frontmatter[current_key] = current_list
    
    return frontmatter, content[match.end():]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def render_frontmatter(data: dict[str, Any]) -> str:
    """Render a dict as a frontmatter block, including the delimiters."""
    lines = ["---"]
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            lines.append(f"{key}:")
            lines.extend(f"  - {item}" for item in value)
        else:
            lines.append(f"{key}: {value}")
    lines.append("---")
    return "\n".join(lines) + "\n"


def get_tags(frontmatter: dict[str, Any]) -> list[str]:
    """Read tags from frontmatter, accepting a list or a comma/space separated string."""
    tags = frontmatter.get("tags", [])
    if isinstance(tags, str):
        tags = [t for t in re.split(r"[,\s]+", tags) if t]
    return [str(t).lstrip("#") for t in tags]


def with_frontmatter(content: str, data: dict[str, Any]) -> str:
    """Prepend a frontmatter block. Keys already in the content's own block win."""
    existing, body = parse_frontmatter(content)
    merged = {**data, **existing}
    return render_frontmatter(merged) + body.lstrip("\n")
