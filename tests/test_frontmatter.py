"""Tests for front-matter splitting and tag normalization."""

import pytest
from datetime import date

from quire_pkg.errors import FrontMatterError
from quire_pkg.frontmatter import normalize_tags, split_front_matter


class TestSplitFrontMatter:
    """Test cases for split_front_matter."""

    def test_no_front_matter_returns_whole_text(self):
        """A file without a block is all body and not an error."""
        text = "# Hi\n\nSome text with --- dashes.\n"
        metadata, body = split_front_matter(text)
        assert metadata == {}
        assert body == text

    def test_empty_input(self):
        assert split_front_matter('') == ({}, '')

    def test_scalar_types_preserved(self):
        text = "---\ntitle: Hello\ndraft: false\norder: 3\nratio: 1.5\ndate: 2024-06-01\n---\nBody\n"
        metadata, body = split_front_matter(text)
        assert metadata == {
            'title': 'Hello',
            'draft': False,
            'order': 3,
            'ratio': 1.5,
            'date': date(2024, 6, 1),
        }
        assert body == "Body\n"

    def test_sequences_and_unknown_keys_preserved(self):
        text = "---\ntags:\n  - a\n  - b\nfavourite_colour: teal\n---\n"
        metadata, body = split_front_matter(text)
        assert metadata['tags'] == ['a', 'b']
        assert metadata['favourite_colour'] == 'teal'
        assert body == ''

    def test_dashes_inside_body_are_kept(self):
        text = "---\ntitle: T\n---\nabove\n\n---\n\nbelow\n"
        metadata, body = split_front_matter(text)
        assert metadata == {'title': 'T'}
        assert body == "above\n\n---\n\nbelow\n"

    def test_empty_block(self):
        metadata, body = split_front_matter("---\n---\nBody")
        assert metadata == {}
        assert body == "Body"

    def test_windows_line_endings(self):
        metadata, body = split_front_matter("---\r\ntitle: T\r\n---\r\nBody\r\n")
        assert metadata == {'title': 'T'}
        assert body == "Body\r\n"

    def test_unclosed_block_raises(self):
        with pytest.raises(FrontMatterError, match="not closed"):
            split_front_matter("---\ntitle: T\n\n# Body\n")

    def test_invalid_yaml_raises(self):
        with pytest.raises(FrontMatterError, match="Invalid YAML"):
            split_front_matter("---\ntitle: [unclosed\n---\nBody\n")

    def test_non_mapping_raises(self):
        with pytest.raises(FrontMatterError, match="mapping"):
            split_front_matter("---\n- just\n- a list\n---\nBody\n")

    def test_front_matter_error_is_value_error(self):
        with pytest.raises(ValueError):
            split_front_matter("---\ntitle: [unclosed\n---\n")


class TestNormalizeTags:
    """Test cases for normalize_tags."""

    def test_single_string_is_wrapped(self):
        assert normalize_tags('solo') == ('solo',)

    def test_list_is_preserved(self):
        assert normalize_tags(['a', 'b']) == ('a', 'b')

    def test_missing_tags(self):
        assert normalize_tags(None) == ()

    def test_non_string_values_become_strings(self):
        assert normalize_tags([1, 'two']) == ('1', 'two')
        assert normalize_tags(2024) == ('2024',)
