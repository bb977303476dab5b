"""
Merge worker results into the final, deterministically ordered collection.
"""

import logging
from typing import Iterable, List, Tuple

from .models import Document, TaskResult

logger = logging.getLogger('Quire')


def collect(results: Iterable[TaskResult]) -> Tuple[List[Document], List[TaskResult]]:
    """
    Split results into documents (in discovery order) and failures.

    If two results carry the same identifier the later one in discovery
    order replaces the earlier one.
    """
    by_identifier = {}
    failures = []
    for result in sorted(results, key=lambda result: result.index):
        if not result.ok:
            failures.append(result)
            continue
        if result.identifier in by_identifier:
            logger.warning(f"Duplicate document identifier '{result.identifier}', keeping the last one")
            del by_identifier[result.identifier]
        by_identifier[result.identifier] = result.document
    return list(by_identifier.values()), failures


def sort_documents(documents: Iterable[Document]) -> List[Document]:
    """Pinned documents first, then newest first. Ties keep their input order."""
    return sorted(
        documents,
        key=lambda document: (document.is_pinned, document.published_datetime),
        reverse=True,
    )


def visible_documents(documents: Iterable[Document]) -> List[Document]:
    """Documents that listing pages show: no drafts, nothing hidden."""
    return [document for document in documents if not document.is_draft and not document.is_hidden]
