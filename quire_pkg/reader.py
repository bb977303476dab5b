"""
Content discovery: list the Markdown files of a content directory and read them.
"""

import os
from typing import List

from .errors import ContentDirectoryError
from .models import Task

MARKDOWN_EXTENSION = '.md'


def list_markdown_files(content_dir: str) -> List[str]:
    """
    Return the Markdown files directly inside content_dir, sorted by name.

    Raises:
        ContentDirectoryError: if the directory is missing or cannot be listed.
    """
    try:
        entries = os.listdir(content_dir)
    except (IOError, OSError) as e:
        raise ContentDirectoryError(f"Cannot list content directory {content_dir}: {e}") from e

    markdown_files = []
    for entry in sorted(entries):
        if not entry.endswith(MARKDOWN_EXTENSION):
            continue
        path = os.path.join(content_dir, entry)
        if os.path.isfile(path):
            markdown_files.append(path)
    return markdown_files


def derive_identifier(path: str) -> str:
    """Identifier of a document: its file name without the .md extension."""
    name = os.path.basename(path)
    return name[:-len(MARKDOWN_EXTENSION)] if name.endswith(MARKDOWN_EXTENSION) else name


def read_document(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return text.lstrip('\ufeff')


def discover_tasks(content_dir: str) -> List[Task]:
    """One task per Markdown file, indexed by discovery order."""
    return [
        Task(index=index, path=path, identifier=derive_identifier(path))
        for index, path in enumerate(list_markdown_files(content_dir))
    ]
