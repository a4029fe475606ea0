"""
CANS.md Frontmatter Parser

CANS.md is Markdown with a YAML frontmatter block:

    ---
    version: "2.0"
    provider: ...
    ---
    # Free-form body

Only the frontmatter is machine-readable; the body is for humans.
"""

from dataclasses import dataclass
from typing import Any, Dict

import yaml

from ..exceptions import CansParseError

DELIMITER = "---"


@dataclass
class ParsedFrontmatter:
    """Frontmatter mapping plus the Markdown body that follows it."""

    frontmatter: Dict[str, Any]
    body: str


def parse_frontmatter(content: str) -> ParsedFrontmatter:
    """
    Extract the YAML frontmatter from CANS.md content.

    Args:
        content: Full file content

    Returns:
        ParsedFrontmatter

    Raises:
        CansParseError: With a distinct message for a missing opening
            delimiter, a missing closing delimiter, an empty block, invalid
            YAML, or a block that is not a mapping
    """
    trimmed = content.lstrip()

    if not trimmed.startswith(DELIMITER):
        raise CansParseError("No YAML frontmatter found (missing opening ---)")

    end_index = trimmed.find("\n" + DELIMITER, len(DELIMITER))
    if end_index == -1:
        raise CansParseError("No closing --- delimiter found for YAML frontmatter")

    yaml_block = trimmed[len(DELIMITER):end_index].strip()
    body = trimmed[end_index + len(DELIMITER) + 1:].strip()

    if not yaml_block:
        raise CansParseError("YAML frontmatter block is empty")

    try:
        parsed = yaml.safe_load(yaml_block)
    except yaml.YAMLError as e:
        raise CansParseError(f"YAML parse error: {e}", original_error=e)

    if not isinstance(parsed, dict):
        raise CansParseError("YAML frontmatter must be an object (not array or scalar)")

    return ParsedFrontmatter(frontmatter=parsed, body=body)
