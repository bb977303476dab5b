"""
Records produced and consumed by the pipeline.

Everything here is picklable so it can travel between worker processes and
the dispatcher.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

UNTITLED = 'Untitled'
ISO_FORMAT = '%Y-%m-%dT%H:%M:%S'


def format_timestamp(moment: datetime) -> str:
    """Render an aware or naive datetime as a canonical UTC ISO-8601 string."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return f"{moment.strftime(ISO_FORMAT)}.{moment.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Inverse of format_timestamp."""
    return datetime.strptime(value, ISO_FORMAT + '.%fZ').replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    anchor_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {'level': self.level, 'text': self.text, 'anchorId': self.anchor_id}


@dataclass(frozen=True)
class Document:
    """A fully rendered content file, ready for page assembly."""
    identifier: str
    title: str
    published_at: str
    body: str
    excerpt: str = ''
    hero_image: Optional[str] = None
    category: Optional[str] = None
    tags: Tuple[str, ...] = ()
    is_draft: bool = False
    is_hidden: bool = False
    is_pinned: bool = False
    short_link: Optional[str] = None
    headings: Tuple[Heading, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    source_path: Optional[str] = None

    @property
    def published_datetime(self) -> datetime:
        return parse_timestamp(self.published_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slug': self.identifier,
            'title': self.title,
            'date': self.published_at,
            'content': self.body,
            'excerpt': self.excerpt,
            'image': self.hero_image,
            'category': self.category,
            'tags': list(self.tags),
            'draft': self.is_draft,
            'hide': self.is_hidden,
            'pin': self.is_pinned,
            'abbrlink': self.short_link,
            'headings': [heading.to_dict() for heading in self.headings],
        }


@dataclass(frozen=True)
class Task:
    index: int
    path: str
    identifier: str


@dataclass(frozen=True)
class TaskResult:
    status: str
    index: int
    identifier: str
    document: Optional[Document] = None
    error: Optional[str] = None
    worker: Optional[str] = None
    elapsed: float = 0.0

    SUCCESS = 'success'
    ERROR = 'error'

    @property
    def ok(self) -> bool:
        return self.status == self.SUCCESS
