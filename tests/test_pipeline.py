"""Tests for the Markdown transform pipeline and heading helpers."""

import pytest
from unittest.mock import patch

from quire_pkg.errors import TransformError
from quire_pkg.headings import scan_headings, slugify_heading
from quire_pkg.models import Heading
from quire_pkg.pipeline import MarkdownPipeline, PipelineConfig

THREE_HEADINGS = """# Getting Started

Intro text.

## Step 2: Install!

More text.

### Use `pip` here
"""


@pytest.fixture
def pipeline():
    return MarkdownPipeline()


class TestSlugifyHeading:
    """Test cases for anchor derivation."""

    def test_basic(self):
        assert slugify_heading('Hi') == 'hi'

    def test_whitespace_becomes_hyphen(self):
        assert slugify_heading('Getting   Started') == 'getting-started'

    def test_punctuation_is_dropped(self):
        assert slugify_heading('Step 2: Install!') == 'step-2-install'

    def test_existing_hyphens_and_underscores_kept(self):
        assert slugify_heading('pre-commit and snake_case') == 'pre-commit-and-snake_case'

    def test_reproducible(self):
        assert slugify_heading('What is new?') == slugify_heading('What is new?')


class TestHeadings:
    """Heading ids and extraction over the rendered tree."""

    def test_single_heading(self, pipeline):
        result = pipeline.render('# Hi')
        assert result.headings == (Heading(level=1, text='Hi', anchor_id='hi'),)
        assert '<h1 id="hi">Hi</h1>' in result.html

    def test_anchors_match_html(self, pipeline):
        """Every extracted anchor appears as the id of its heading element."""
        result = pipeline.render(THREE_HEADINGS)
        assert [h.anchor_id for h in result.headings] == ['getting-started', 'step-2-install', 'use-pip-here']
        assert [h.level for h in result.headings] == [1, 2, 3]
        for heading in result.headings:
            assert f'<h{heading.level} id="{heading.anchor_id}">' in result.html

    def test_heading_without_anchor_is_left_out(self, pipeline):
        result = pipeline.render('# Café & Crème\n\n# !!!\n')
        assert result.headings == (Heading(level=1, text='Café & Crème', anchor_id='café--crème'),)
        assert '<h1>!!!</h1>' in result.html
        assert 'id=""' not in result.html
        for heading in result.headings:
            assert f'id="{heading.anchor_id}"' in result.html

    def test_heading_text_includes_inline_markup(self, pipeline):
        result = pipeline.render('## Use `foo` **now**')
        assert result.headings[0].text == 'Use foo now'
        assert result.headings[0].anchor_id == 'use-foo-now'

    def test_explicit_id_is_kept(self, pipeline):
        result = pipeline.render('<h2 id="custom">Custom Heading</h2>\n\n## Generated\n')
        assert result.headings[0] == Heading(level=2, text='Custom Heading', anchor_id='custom')
        assert result.headings[1].anchor_id == 'generated'
        assert 'id="custom"' in result.html

    def test_levels_stay_in_range(self, pipeline):
        body = '\n\n'.join('#' * level + f' Level {level}' for level in range(1, 7))
        result = pipeline.render(body)
        assert [h.level for h in result.headings] == [1, 2, 3, 4, 5, 6]

    def test_max_depth(self):
        result = MarkdownPipeline(PipelineConfig(toc_max_depth=2)).render(THREE_HEADINGS)
        assert [h.level for h in result.headings] == [1, 2]
        # Ids are still assigned to deeper headings
        assert 'id="use-pip-here"' in result.html

    def test_collection_disabled(self):
        result = MarkdownPipeline(PipelineConfig(collect_headings=False)).render(THREE_HEADINGS)
        assert result.headings == ()
        assert 'id="getting-started"' in result.html

    def test_no_headings(self, pipeline):
        assert pipeline.render('Just a paragraph.').headings == ()


class TestScanHeadings:
    """Test cases for the regex fallback."""

    def test_scan_uses_id_attribute(self):
        headings = scan_headings('<h2 id="x">A <em>b</em></h2><h3>Plain Text</h3>')
        assert headings == [
            Heading(level=2, text='A b', anchor_id='x'),
            Heading(level=3, text='Plain Text', anchor_id='plain-text'),
        ]

    def test_scan_respects_max_depth(self):
        assert scan_headings('<h1>One</h1><h4>Four</h4>', max_depth=3) == [
            Heading(level=1, text='One', anchor_id='one'),
        ]

    def test_scan_skips_empty(self):
        assert scan_headings('<h2></h2>') == []

    def test_scan_skips_headings_without_anchor(self):
        assert scan_headings('<h2>!!!</h2><h2 id="">Empty id</h2><h3>Kept</h3>') == [
            Heading(level=3, text='Kept', anchor_id='kept'),
        ]


class TestMarkdownFeatures:
    """GFM, math and highlighting stages."""

    def test_table(self, pipeline):
        html = pipeline.render('| a | b |\n|---|---|\n| 1 | 2 |\n').html
        assert '<table>' in html
        assert '<td>1</td>' in html

    def test_strikethrough(self, pipeline):
        assert '<del>gone</del>' in pipeline.render('~~gone~~').html

    def test_autolink(self, pipeline):
        assert '<a href="https://example.com">' in pipeline.render('See https://example.com today').html

    def test_block_math_renders_mathml(self, pipeline):
        html = pipeline.render('$$\nx^2\n$$\n').html
        assert '<div class="math math-display">' in html
        assert '<math' in html
        assert '<msup>' in html

    def test_inline_math_renders_mathml(self, pipeline):
        html = pipeline.render('Area is $a+b$ here.').html
        assert '<span class="math math-inline"><math' in html

    def test_math_disabled_leaves_tex(self):
        html = MarkdownPipeline(PipelineConfig(math=False)).render('Area is $a+b$ here.').html
        assert '<math' not in html
        assert 'a+b' in html

    def test_math_failure_is_a_transform_error(self, pipeline):
        with patch('quire_pkg.pipeline.latex_to_mathml', side_effect=ValueError('bad tex')):
            with pytest.raises(TransformError) as excinfo:
                pipeline.render('$$\n\\frac{1}\n$$\n')
        assert excinfo.value.stage == 'math'
        assert 'bad tex' in str(excinfo.value)

    def test_known_language_is_highlighted(self, pipeline):
        html = pipeline.render("```python\nprint('hi')\n```\n").html
        assert 'class="language-python highlight"' in html
        assert '<span class="nb">print</span>' in html

    def test_unknown_language_falls_back_to_text(self, pipeline):
        html = pipeline.render('```nosuchlanguage\n<script>x</script>\n```\n').html
        assert 'class="language-nosuchlanguage highlight"' in html
        assert '&lt;script&gt;x&lt;/script&gt;' in html

    def test_code_without_language(self, pipeline):
        html = pipeline.render('```\nplain & simple\n```\n').html
        assert '<code class="highlight">' in html
        assert 'plain &amp; simple' in html

    def test_highlight_disabled(self):
        html = MarkdownPipeline(PipelineConfig(highlight=False)).render("```python\nprint('hi')\n```\n").html
        assert 'highlight' not in html
        assert '<span' not in html

    def test_malformed_markdown_does_not_raise(self, pipeline):
        result = pipeline.render('**unclosed [link](  \n| broken | table\n```\nnever closed')
        assert isinstance(result.html, str)


class TestPipelineBehaviour:
    """Idempotence and stage hooks."""

    def test_idempotent_across_instances(self):
        body = THREE_HEADINGS + "\n```python\nx = 1\n```\n\n$$\ny = x^2\n$$\n"
        first = MarkdownPipeline().render(body)
        second = MarkdownPipeline().render(body)
        assert first.html == second.html
        assert first.headings == second.headings

    def test_extra_stage_receives_tree_and_identifier(self):
        seen = []

        def mark(tree, identifier):
            seen.append(identifier)
            tree.find('p')['class'] = 'marked'

        pipeline = MarkdownPipeline(PipelineConfig(extra_stages=(('mark', mark),)))
        html = pipeline.render('Hello', identifier='post-1').html
        assert seen == ['post-1']
        assert '<p class="marked">Hello</p>' in html

    def test_extra_stage_failure_names_the_stage(self):
        def explode(tree, identifier):
            raise RuntimeError('boom')

        pipeline = MarkdownPipeline(PipelineConfig(extra_stages=(('explode', explode),)))
        with pytest.raises(TransformError) as excinfo:
            pipeline.render('Hello')
        assert excinfo.value.stage == 'explode'
        assert 'RuntimeError: boom' in str(excinfo.value)
