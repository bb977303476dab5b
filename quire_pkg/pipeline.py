"""
Markdown to HTML transform pipeline.

A document body goes through a fixed sequence of stages over a shared tree:

    parse (with GFM and math syntax) -> render math -> HTML tree
    -> heading ids -> syntax highlighting -> [extra stages]
    -> heading extraction -> stringify

Parsing uses Mistune in AST mode, so the Markdown tree is the token list
Mistune produces. The HTML tree is a BeautifulSoup document built from that
token list with Mistune's own HTML renderer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import mistune
from bs4 import BeautifulSoup
from latex2mathml.converter import convert as latex_to_mathml
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import TransformError
from .headings import MAX_LEVEL, assign_heading_ids, extract_headings, scan_headings
from .models import Heading

GFM_PLUGINS = ('table', 'strikethrough', 'url', 'task_lists')
MATH_PLUGIN = 'math'
HIGHLIGHT_CLASS = 'highlight'
LANGUAGE_PREFIX = 'language-'
TREE_BUILDER = 'html.parser'

logger = logging.getLogger('FileProcessor')


@dataclass(frozen=True)
class PipelineConfig:
    """Build-wide settings handed to every pipeline instance."""
    gfm_plugins: Tuple[str, ...] = GFM_PLUGINS
    math: bool = True
    highlight: bool = True
    collect_headings: bool = True
    toc_max_depth: int = MAX_LEVEL
    build_time: Optional[str] = None
    extra_stages: Tuple[Tuple[str, Callable[[BeautifulSoup, str], Any]], ...] = field(default=())


@dataclass(frozen=True)
class RenderResult:
    html: str
    headings: Tuple[Heading, ...]


def create_parser(plugins: Sequence[str]) -> mistune.Markdown:
    """Mistune parser that returns the token tree instead of HTML."""
    return mistune.create_markdown(renderer=None, plugins=list(plugins))


def create_html_renderer(plugins: Sequence[str]) -> mistune.HTMLRenderer:
    """HTML renderer with the render methods the plugins register."""
    md = mistune.create_markdown(
        escape=False,
        renderer=mistune.HTMLRenderer(escape=False),
        plugins=list(plugins),
    )
    return md.renderer


def render_math(tokens: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace math tokens with raw MathML nodes, recursively."""
    for index, token in enumerate(tokens):
        kind = token.get('type')
        if kind == 'block_math':
            mathml = latex_to_mathml(token['raw'].strip(), display='block')
            tokens[index] = {'type': 'block_html', 'raw': f'<div class="math math-display">{mathml}</div>'}
        elif kind == 'inline_math':
            mathml = latex_to_mathml(token['raw'].strip(), display='inline')
            tokens[index] = {'type': 'inline_html', 'raw': f'<span class="math math-inline">{mathml}</span>'}
        elif 'children' in token:
            render_math(token['children'])
    return tokens


def to_html_tree(renderer: mistune.HTMLRenderer, tokens, state) -> BeautifulSoup:
    return BeautifulSoup(renderer(tokens, state), TREE_BUILDER)


def _code_language(code_tag) -> Optional[str]:
    for css_class in code_tag.get('class') or []:
        if css_class.startswith(LANGUAGE_PREFIX):
            return css_class[len(LANGUAGE_PREFIX):]
    return None


def _lexer_for(language):
    if not language:
        return TextLexer()
    try:
        return get_lexer_by_name(language)
    except ClassNotFound:
        logger.debug(f"No lexer for language '{language}', highlighting as plain text")
        return TextLexer()


def highlight_code(tree: BeautifulSoup) -> BeautifulSoup:
    """Highlight fenced code blocks in place; unknown languages become plain text."""
    formatter = HtmlFormatter(nowrap=True)
    for code_tag in tree.select('pre > code'):
        source = code_tag.get_text()
        highlighted = highlight(source, _lexer_for(_code_language(code_tag)), formatter)
        code_tag.clear()
        code_tag.append(BeautifulSoup(highlighted, TREE_BUILDER))
        classes = list(code_tag.get('class') or [])
        if HIGHLIGHT_CLASS not in classes:
            classes.append(HIGHLIGHT_CLASS)
        code_tag['class'] = classes
    return tree


def stringify(tree: BeautifulSoup) -> str:
    return str(tree)


class MarkdownPipeline:
    """Renders Markdown bodies to HTML plus a heading outline."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        plugins = list(self.config.gfm_plugins) + [MATH_PLUGIN]
        self.parser = create_parser(plugins)
        self.renderer = create_html_renderer(plugins)

    def _run_stage(self, name, func, *args):
        try:
            return func(*args)
        except TransformError:
            raise
        except Exception as e:
            raise TransformError(name, f"{type(e).__name__}: {e}") from e

    def render(self, body: str, identifier: str = '') -> RenderResult:
        """
        Run every stage over one document body.

        Args:
            body: Markdown text without front matter
            identifier: Document identifier, passed to extra stages

        Returns:
            RenderResult with the HTML string and the extracted headings

        Raises:
            TransformError: if any stage fails
        """
        tokens, state = self._run_stage('parse', self.parser.parse, body)

        if self.config.math:
            tokens = self._run_stage('math', render_math, tokens)

        tree = self._run_stage('html', to_html_tree, self.renderer, tokens, state)
        tree = self._run_stage('slug', assign_heading_ids, tree)

        if self.config.highlight:
            tree = self._run_stage('highlight', highlight_code, tree)

        for name, stage in self.config.extra_stages:
            result = self._run_stage(name, stage, tree, identifier)
            if result is not None:
                tree = result

        headings = []
        if self.config.collect_headings:
            headings = self._run_stage('headings', extract_headings, tree, self.config.toc_max_depth)

        markup = self._run_stage('stringify', stringify, tree)

        if self.config.collect_headings and not headings:
            headings = scan_headings(markup, self.config.toc_max_depth)

        return RenderResult(html=markup, headings=tuple(headings))
