"""
Error types raised by the Quire pipeline.

Directory-level and worker-pool errors abort a build. Front-matter and
transform errors are caught per document and reported as failed tasks.
"""


class QuireError(Exception):
    """Base class for all Quire errors."""


class ContentDirectoryError(QuireError, IOError):
    """The content directory is missing or cannot be listed."""


class FrontMatterError(QuireError, ValueError):
    """A front-matter block is present but cannot be split or parsed."""


class TransformError(QuireError):
    """A transform stage failed for a single document."""

    def __init__(self, stage, detail):
        super().__init__(f"{stage}: {detail}")
        self.stage = stage
        self.detail = detail

    def __reduce__(self):
        return (self.__class__, (self.stage, self.detail))


class WorkerPoolError(QuireError):
    """A worker crashed or could not start."""
