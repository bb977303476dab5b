"""
Heading anchors and table-of-contents extraction.

Anchors are derived from heading text alone so that ``#anchor`` links written
by hand keep working: lowercase, whitespace runs become ``-``, and anything
that is not a word character or ``-`` is dropped.
"""

import html
import re
from typing import List

from bs4 import BeautifulSoup

from .models import Heading

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']
MAX_LEVEL = 6

WHITESPACE_RE = re.compile(r'\s+')
NON_WORD_RE = re.compile(r'[^\w-]')
TAG_RE = re.compile(r'<[^>]+>')
HEADING_RE = re.compile(r'<h([1-6])(\s[^>]*)?>(.*?)</h\1\s*>', re.IGNORECASE | re.DOTALL)
ID_ATTR_RE = re.compile(r'\bid\s*=\s*["\']([^"\']*)["\']', re.IGNORECASE)


def slugify_heading(text: str) -> str:
    slug = WHITESPACE_RE.sub('-', text.strip().lower())
    return NON_WORD_RE.sub('', slug)


def heading_text(tag) -> str:
    return tag.get_text().strip()


def assign_heading_ids(tree: BeautifulSoup) -> BeautifulSoup:
    """Give every heading without an id one derived from its text."""
    for tag in tree.find_all(HEADING_TAGS):
        if tag.get('id'):
            continue
        anchor_id = slugify_heading(heading_text(tag))
        if anchor_id:
            tag['id'] = anchor_id
    return tree


def extract_headings(tree: BeautifulSoup, max_depth: int = MAX_LEVEL) -> List[Heading]:
    """
    Collect (level, text, anchor) for each heading, in document order.

    Headings without an anchor (text that slugs to nothing) are left out,
    since a table of contents cannot link to them.
    """
    headings = []
    for tag in tree.find_all(HEADING_TAGS):
        level = int(tag.name[1])
        if level > max_depth:
            continue
        text = heading_text(tag)
        if not text:
            continue
        anchor_id = tag.get('id') or slugify_heading(text)
        if not anchor_id:
            continue
        headings.append(Heading(level=level, text=text, anchor_id=anchor_id))
    return headings


def scan_headings(markup: str, max_depth: int = MAX_LEVEL) -> List[Heading]:
    """
    Looser regex scan over rendered HTML.

    Only used when the tree walk found nothing; the anchors it reports come
    from the id attribute when there is one.
    """
    headings = []
    for match in HEADING_RE.finditer(markup):
        level = int(match.group(1))
        if level > max_depth:
            continue
        text = html.unescape(TAG_RE.sub('', match.group(3))).strip()
        if not text:
            continue
        id_match = ID_ATTR_RE.search(match.group(2) or '')
        anchor_id = id_match.group(1) if id_match else slugify_heading(text)
        if not anchor_id:
            continue
        headings.append(Heading(level=level, text=text, anchor_id=anchor_id))
    return headings
