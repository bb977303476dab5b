"""
Split YAML front matter from the Markdown body of a content file.
"""

import re
from typing import Any, Dict, Tuple

import yaml

from .errors import FrontMatterError

OPENING_DELIMITER = re.compile(r'^---[ \t]*$')
CLOSING_DELIMITER = re.compile(r'^(?:---|\.\.\.)[ \t]*$')


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Separate the front-matter block at the top of a file from its body.

    A file that does not open with a ``---`` line has no front matter: the
    metadata is empty and the body is the whole text.

    Args:
        text: Raw file contents

    Returns:
        (metadata, body)

    Raises:
        FrontMatterError: if the block is never closed, is not valid YAML, or
            does not hold a mapping.
    """
    lines = text.splitlines(keepends=True)
    if not lines or not OPENING_DELIMITER.match(lines[0].rstrip('\r\n')):
        return {}, text

    for end, line in enumerate(lines[1:], start=1):
        if CLOSING_DELIMITER.match(line.rstrip('\r\n')):
            break
    else:
        raise FrontMatterError("Front matter block is not closed")

    block = ''.join(lines[1:end])
    body = ''.join(lines[end + 1:])

    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML front matter: {e}") from e

    if metadata is None:
        return {}, body
    if not isinstance(metadata, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(metadata).__name__}"
        )
    return metadata, body


def normalize_tags(value) -> Tuple[str, ...]:
    """Wrap a single tag in a tuple; keep sequences in their given order."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(tag) for tag in value)
    return (str(value),)
