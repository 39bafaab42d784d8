"""Abstract repository interface for the CurriculumContent aggregate and its change ledger.

Every write that takes an ``expected_version`` is a compare-and-swap: when the
stored version differs, nothing is written and ``ConflictError`` is raised.
Each method is a single transaction.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from curriculum_content.domain.content.models import (
    ContentAnalytics,
    ContentChangeRecord,
    ContentMetadata,
    ContentStatus,
    ContentVariant,
    CurriculumContent,
)


class ContentRepository(ABC):

    @abstractmethod
    def insert_content(self, content: CurriculumContent, record: ContentChangeRecord) -> None:
        """Insert metadata, every variant and the create record."""
        ...

    @abstractmethod
    def get_by_id(self, content_id: str) -> Optional[CurriculumContent]:
        """Return the aggregate with variants, links and analytics, or None."""
        ...

    @abstractmethod
    def list_metadata(self) -> List[ContentMetadata]:
        ...

    @abstractmethod
    def get_statuses(self, content_ids: Iterable[str]) -> Dict[str, ContentStatus]:
        """Status per existing id; unknown ids are absent from the result."""
        ...

    @abstractmethod
    def save_aggregate(
        self, content: CurriculumContent, expected_version: int, record: ContentChangeRecord,
    ) -> None:
        """Write metadata, default-variant pointer and assessment links, and append the record."""
        ...

    @abstractmethod
    def save_variant(
        self,
        variant: ContentVariant,
        expected_version: Optional[int],
        record: ContentChangeRecord,
    ) -> None:
        """Insert a new variant (expected_version None) or update one in place."""
        ...

    @abstractmethod
    def remove_variant(
        self,
        content: CurriculumContent,
        variant_id: str,
        expected_version: int,
        record: ContentChangeRecord,
    ) -> None:
        """Delete one variant and save the aggregate (possibly repointed default) together."""
        ...

    @abstractmethod
    def delete(self, content_id: str, expected_version: int, record: ContentChangeRecord) -> None:
        """Hard delete metadata and variants; the ledger keeps its records."""
        ...

    @abstractmethod
    def increment_counter(self, content_id: str, counter: str) -> ContentAnalytics:
        """Atomically add one to ``view_count`` or ``completion_count``."""
        ...

    @abstractmethod
    def save_analytics(self, content_id: str, analytics: ContentAnalytics) -> None:
        """Persist the rating aggregate. View and completion counts only move through increment_counter."""
        ...

    @abstractmethod
    def get_changes(self, content_id: str) -> List[ContentChangeRecord]:
        """All ledger records for a content id in the order they were written."""
        ...

    @abstractmethod
    def get_change(self, record_id: str) -> Optional[ContentChangeRecord]:
        ...
