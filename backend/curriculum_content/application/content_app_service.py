"""Application service — content entity store and change ledger: validate → authorise → domain op → persist."""
from __future__ import annotations
import logging
from typing import List, Optional

from curriculum_content.application.content_store import ContentStoreService
from curriculum_content.domain.common.errors import NotFoundError
from curriculum_content.domain.content.models import (
    ContentAnalytics,
    ContentChangeRecord,
    CurriculumContent,
)
from curriculum_content.domain.content.service import ContentDomainService
from curriculum_content.domain.permission.models import PermissionLevel

logger = logging.getLogger(__name__)


class ContentAppService(ContentStoreService):
    def __init__(self, repo, permissions, locks):
        super().__init__(repo, permissions, locks)
        self._domain = ContentDomainService()

    # ------------------------------------------------------------------
    # CREATE
    # ------------------------------------------------------------------
    def create_content(self, actor: str, metadata: dict, initial_variant: dict) -> CurriculumContent:
        """
        Create a content item in draft with one variant, which becomes the
        default. ``initial_variant`` carries ``learning_style`` and ``body`` and
        optionally ``media_refs`` and ``interactive_element``.
        """
        initial_variant = dict(initial_variant or {})
        content, record = self._domain.create_content(
            actor,
            metadata,
            initial_variant.get("learning_style"),
            initial_variant.get("body"),
            media_refs=initial_variant.get("media_refs"),
            interactive_element=initial_variant.get("interactive_element"),
        ).unwrap()
        self._require(actor, content, PermissionLevel.EDIT, "create content")
        self._repo.insert_content(content, record)
        logger.info("Created content %s (%s) by %s", content.id, content.metadata.title, actor)
        return content

    # ------------------------------------------------------------------
    # READ
    # ------------------------------------------------------------------
    def get_content(self, content_id: str) -> CurriculumContent:
        return self._load(content_id)

    def history(self, content_id: str) -> List[ContentChangeRecord]:
        """The change ledger for an item in chronological order, including after deletion."""
        records = self._repo.get_changes(content_id)
        if not records:
            raise NotFoundError(f"No change history for content '{content_id}'.")
        return records

    def get_change(self, record_id: str) -> ContentChangeRecord:
        record = self._repo.get_change(record_id)
        if record is None:
            raise NotFoundError(f"Change record '{record_id}' not found.")
        return record

    # ------------------------------------------------------------------
    # UPDATE
    # ------------------------------------------------------------------
    def update_content(
        self, content_id: str, actor: str, changes: dict, description: Optional[str] = None,
    ) -> CurriculumContent:
        with self._mutation(content_id, "update") as content:
            self._require(actor, content, PermissionLevel.EDIT, "update content")
            expected = content.metadata.version
            content, record = self._domain.update_metadata(content, changes, actor, description).unwrap()
            # Moving an item to another subject or key stage needs edit there too.
            self._require(actor, content, PermissionLevel.EDIT, "move content to this scope")
            self._repo.save_aggregate(content, expected, record)
        logger.info("Updated content %s to version %d by %s", content_id, content.metadata.version, actor)
        return content

    def link_assessment(self, content_id: str, assessment_id: str, actor: str) -> CurriculumContent:
        with self._mutation(content_id, "link assessment") as content:
            self._require(actor, content, PermissionLevel.EDIT, "link assessments")
            expected = content.metadata.version
            content, record = self._domain.link_assessment(content, assessment_id, actor).unwrap()
            self._repo.save_aggregate(content, expected, record)
        logger.info("Linked assessment %s to content %s", assessment_id, content_id)
        return content

    def unlink_assessment(self, content_id: str, assessment_id: str, actor: str) -> CurriculumContent:
        with self._mutation(content_id, "unlink assessment") as content:
            self._require(actor, content, PermissionLevel.EDIT, "unlink assessments")
            expected = content.metadata.version
            content, record = self._domain.unlink_assessment(content, assessment_id, actor).unwrap()
            self._repo.save_aggregate(content, expected, record)
        logger.info("Unlinked assessment %s from content %s", assessment_id, content_id)
        return content

    # ------------------------------------------------------------------
    # DELETE
    # ------------------------------------------------------------------
    def delete_content(self, content_id: str, actor: str) -> ContentChangeRecord:
        with self._mutation(content_id, "delete") as content:
            self._require(actor, content, PermissionLevel.ADMIN, "delete content")
            record = self._domain.prepare_delete(content, actor).unwrap()
            self._repo.delete(content_id, content.metadata.version, record)
        logger.info("Deleted content %s by %s", content_id, actor)
        return record

    # ------------------------------------------------------------------
    # ANALYTICS
    # ------------------------------------------------------------------
    def record_view(self, content_id: str) -> ContentAnalytics:
        return self._repo.increment_counter(content_id, "view_count")

    def record_completion(self, content_id: str) -> ContentAnalytics:
        return self._repo.increment_counter(content_id, "completion_count")

    def record_rating(self, content_id: str, rating: int) -> ContentAnalytics:
        with self._mutation(content_id, "rate") as content:
            content = self._domain.apply_rating(content, rating).unwrap()
            self._repo.save_analytics(content_id, content.analytics)
        return content.analytics
