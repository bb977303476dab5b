"""Test configuration and fixtures for Quire tests."""

import pytest
import tempfile
import shutil
from datetime import datetime, timezone
from pathlib import Path

FIXED_NOW = datetime(2024, 12, 31, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def content_dir(temp_dir):
    """Create an empty content directory."""
    content = Path(temp_dir) / 'content'
    content.mkdir()
    return content


@pytest.fixture
def write_post(content_dir):
    """Write a Markdown file into the content directory and return its path."""
    def _write(name, text):
        path = content_dir / name
        path.write_text(text, encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed build time."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_site(write_post):
    """The a/b/c content set: one pinned post, one dated post, one bare file."""
    write_post('a.md', '---\ntitle: "A"\ndate: 2024-06-01\npin: true\n---\n\nPinned post.\n')
    write_post('b.md', '---\ntitle: "B"\ndate: 2025-01-01\n---\n\nNewer post.\n')
    write_post('c.md', '# Hi')
    return write_post


@pytest.fixture
def batch_with_one_broken(write_post):
    """Ten posts, one of which has front matter that is not valid YAML."""
    for i in range(10):
        if i == 6:
            write_post(f'post-{i}.md', '---\ntitle: [unclosed\n---\n\nBroken.\n')
        else:
            write_post(f'post-{i}.md', f'---\ntitle: Post {i}\ndate: 2024-01-{i + 1:02d}\n---\n\n## Section {i}\n')
    return 'post-6'
