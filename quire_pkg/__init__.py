"""
Quire - parallel Markdown pipeline for static blogs.

Quire reads a directory of Markdown posts with YAML front matter, renders
them to HTML on a pool of workers (GFM, math, syntax highlighting, heading
anchors) and returns the documents pinned-first and newest-first, ready for
page assembly.
"""

__version__ = "1.0.0"

from .core import Quire, BuildResult
from .models import Document, Heading
from .pipeline import MarkdownPipeline, PipelineConfig
from .worker import FileProcessor

__all__ = ['Quire', 'BuildResult', 'Document', 'Heading', 'MarkdownPipeline', 'PipelineConfig', 'FileProcessor']
