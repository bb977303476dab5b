import os
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Tuple

from .aggregator import collect, sort_documents
from .dispatcher import (
    DEFAULT_PARALLEL_THRESHOLD,
    DEFAULT_PREFETCH,
    DEFAULT_STALL_WARNING,
    Dispatcher,
)
from .headings import MAX_LEVEL
from .models import Document, TaskResult, format_timestamp
from .pipeline import GFM_PLUGINS, PipelineConfig
from .reader import discover_tasks


@dataclass(frozen=True)
class BuildResult:
    documents: Tuple[Document, ...]
    failures: Tuple[TaskResult, ...]
    elapsed: float
    results: Tuple[TaskResult, ...] = ()


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno == logging.INFO:
            allowed_messages = [
                "Starting build",
                "Processed",
                "Failed documents:",
                "Pipeline completed in",
            ]
            return any(msg in record.getMessage() for msg in allowed_messages)
        return True  # Allow all other levels (WARNING, ERROR, etc.)


def utc_now():
    return datetime.now(timezone.utc)


class Quire:
    """Reads a content directory and renders every Markdown file in it."""

    @classmethod
    def from_settings(cls, settings, clock=None):
        """Create a Quire build from merged settings (see QuireSettings)."""
        return cls(
            content_dir=settings.get('content', 'content'),
            workers=settings.get('workers'),
            prefetch=settings.get('prefetch', DEFAULT_PREFETCH),
            executor=settings.get('executor', 'process'),
            parallel_threshold=settings.get('parallel_threshold', DEFAULT_PARALLEL_THRESHOLD),
            stall_warning=settings.get('stall_warning', DEFAULT_STALL_WARNING),
            math=settings.get('math', True),
            highlight=settings.get('highlight', True),
            collect_headings=settings.get('collect_headings', True),
            toc_max_depth=settings.get('toc_max_depth', MAX_LEVEL),
            gfm_plugins=settings.get('gfm_plugins') or GFM_PLUGINS,
            log_dir=settings.get('log_dir'),
            log_level=settings.get('log_level', 'INFO'),
            clock=clock,
        )

    def __init__(self, content_dir='content', workers=None, prefetch=DEFAULT_PREFETCH, executor='process',
                 parallel_threshold=DEFAULT_PARALLEL_THRESHOLD, stall_warning=DEFAULT_STALL_WARNING,
                 math=True, highlight=True, collect_headings=True, toc_max_depth=MAX_LEVEL,
                 gfm_plugins=GFM_PLUGINS, extra_stages=(), log_dir=None, log_level='INFO', clock=None):
        self.content_dir = content_dir
        self.workers = workers
        self.prefetch = prefetch
        self.executor = executor
        self.parallel_threshold = parallel_threshold
        self.stall_warning = stall_warning
        self.math = math
        self.highlight = highlight
        self.collect_headings = collect_headings
        self.toc_max_depth = toc_max_depth
        self.gfm_plugins = tuple(gfm_plugins)
        self.extra_stages = tuple(extra_stages)
        self.log_dir = log_dir
        self.log_level = log_level
        self.clock = clock or utc_now
        self.documents_processed = 0
        self.documents_failed = 0
        self.documents = ()

        self.setup_logging()

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('Quire')
        self.logger.setLevel(getattr(logging, str(self.log_level).upper(), logging.INFO))

        if not self.logger.handlers:
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(console_handler)

            # File handler for all logs
            if self.log_dir:
                os.makedirs(self.log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('quire_%Y-%m-%d_%H-%M-%S.log')
                file_handler = logging.FileHandler(os.path.join(self.log_dir, log_filename))
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(
                    logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                )
                self.logger.addHandler(file_handler)

    def pipeline_config(self, build_time):
        return PipelineConfig(
            gfm_plugins=self.gfm_plugins,
            math=self.math,
            highlight=self.highlight,
            collect_headings=self.collect_headings,
            toc_max_depth=self.toc_max_depth,
            build_time=build_time,
            extra_stages=self.extra_stages,
        )

    def build(self):
        """
        Render every document in the content directory.

        Returns:
            BuildResult with documents sorted pinned-first, newest-first

        Raises:
            ContentDirectoryError: the content directory cannot be listed
            WorkerPoolError: a worker crashed
        """
        self.logger.info(f"Starting build of {self.content_dir}")
        start_time = time.time()

        # One timestamp for every document without a date
        build_time = format_timestamp(self.clock())
        tasks = discover_tasks(self.content_dir)

        dispatcher = Dispatcher(
            config=self.pipeline_config(build_time),
            workers=self.workers,
            prefetch=self.prefetch,
            executor=self.executor,
            parallel_threshold=self.parallel_threshold,
            stall_warning=self.stall_warning,
        )
        results = dispatcher.run(tasks)

        documents, failures = collect(results)
        self.documents = tuple(sort_documents(documents))
        self.documents_processed = len(self.documents)
        self.documents_failed = len(failures)

        elapsed = time.time() - start_time
        self.logger.info(f"Processed {self.documents_processed} documents")
        if failures:
            self.logger.info(f"Failed documents: {self.documents_failed}")
        self.logger.info(f"Pipeline completed in {elapsed:.6f} seconds.")

        return BuildResult(
            documents=self.documents,
            failures=tuple(failures),
            elapsed=elapsed,
            results=tuple(results),
        )

    def write_json(self, output_path, documents=None):
        """Write documents (default: the last build's) as a JSON array."""
        documents = self.documents if documents is None else documents
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump([document.to_dict() for document in documents], f, ensure_ascii=False, indent=2)
        except (IOError, OSError) as e:
            self.logger.error(f"Failed to write JSON file {output_path}: {e}")
            raise
        self.logger.debug(f"Wrote {len(documents)} documents to {output_path}")
