"""
Per-document work: read a file, split its front matter, render its body and
build the Document record.

Each worker (process or thread) owns one FileProcessor, created by
``initializer`` and kept in thread-local storage.
"""

import os
import logging
import threading
import time
from datetime import datetime, date, timezone

from .frontmatter import normalize_tags, split_front_matter
from .models import UNTITLED, Document, TaskResult, format_timestamp
from .pipeline import MarkdownPipeline, PipelineConfig
from .reader import read_document

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d', '%b %d, %Y']

# Thread-local storage for FileProcessor instances
thread_local = threading.local()


def initializer(config):
    """Create the FileProcessor for the current worker."""
    thread_local.file_processor = FileProcessor(config)


def process_file(task):
    """Process a task with the worker's FileProcessor."""
    processor = getattr(thread_local, 'file_processor', None)
    if processor is None:
        raise RuntimeError("Worker was not initialized")
    return processor.process(task)


def worker_name():
    return f"{os.getpid()}/{threading.current_thread().name}"


def _optional_string(metadata, key):
    value = metadata.get(key)
    return None if value is None else str(value)


class FileProcessor:
    def __init__(self, config=None):
        self.config = config or PipelineConfig()
        self.pipeline = MarkdownPipeline(self.config)
        self.logger = logging.getLogger('FileProcessor')

    def parse_date(self, value):
        """Parse a front-matter date into an aware UTC datetime."""
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            parsed = self._parse_date_string(value.strip())
        else:
            raise ValueError(f"Unsupported date value: {value!r}")

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    def _parse_date_string(self, value):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            pass
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue
        raise ValueError(f"Invalid date: {value!r}")

    def published_at(self, metadata):
        value = metadata.get('date')
        if value is None or value == '':
            return self.config.build_time or format_timestamp(datetime.now(timezone.utc))
        return format_timestamp(self.parse_date(value))

    def build_document(self, task, metadata, rendered):
        title = metadata.get('title')
        return Document(
            identifier=task.identifier,
            title=title if isinstance(title, str) and title else UNTITLED,
            published_at=self.published_at(metadata),
            body=rendered.html,
            excerpt=str(metadata.get('excerpt') or ''),
            hero_image=_optional_string(metadata, 'image'),
            category=_optional_string(metadata, 'category'),
            tags=normalize_tags(metadata.get('tags')),
            is_draft=metadata.get('draft') is True,
            is_hidden=metadata.get('hide') is True,
            is_pinned=metadata.get('pin') is True,
            short_link=_optional_string(metadata, 'abbrlink'),
            headings=rendered.headings,
            metadata=metadata,
            source_path=task.path,
        )

    def process(self, task):
        """
        Process a single Markdown file.

        Never raises for problems with the document itself: they come back as
        an error result carrying the identifier and the failure detail.
        """
        start_time = time.time()
        try:
            raw = read_document(task.path)
            metadata, body = split_front_matter(raw)
            rendered = self.pipeline.render(body, task.identifier)
            document = self.build_document(task, metadata, rendered)
        except Exception as e:
            detail = f"{type(e).__name__}: {e}"
            self.logger.debug(f"Error processing {task.path}: {detail}")
            return TaskResult(
                status=TaskResult.ERROR,
                index=task.index,
                identifier=task.identifier,
                error=detail,
                worker=worker_name(),
                elapsed=time.time() - start_time,
            )

        elapsed = time.time() - start_time
        self.logger.debug(f"Rendered {task.identifier} in {elapsed:.6f} seconds")
        return TaskResult(
            status=TaskResult.SUCCESS,
            index=task.index,
            identifier=task.identifier,
            document=document,
            worker=worker_name(),
            elapsed=elapsed,
        )
