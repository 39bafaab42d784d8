"""Application service — role-gated publishing workflow for content items."""
from __future__ import annotations
import logging
from typing import List, Optional

from curriculum_content.application.content_store import ContentStoreService
from curriculum_content.domain.content.models import ContentMetadata
from curriculum_content.domain.workflow.rules import TransitionRule, allowed_transitions
from curriculum_content.domain.workflow.service import WorkflowDomainService

logger = logging.getLogger(__name__)


class WorkflowAppService(ContentStoreService):
    def __init__(self, repo, permissions, locks):
        super().__init__(repo, permissions, locks)
        self._domain = WorkflowDomainService()

    def transition(
        self, content_id: str, to_status, actor: str, comment: Optional[str] = None,
    ) -> ContentMetadata:
        """
        Move an item along one edge of the workflow table. The status is read
        under the item's lock, so of two racing calls from the same status only
        the first succeeds; the second sees the new status.
        """
        with self._mutation(content_id, "transition") as content:
            ref = self._permissions.ref_for_content(content.metadata)
            level = self._permissions.effective_level(actor, ref)
            source = content.metadata.status
            expected = content.metadata.version
            metadata, record = self._domain.transition(content.metadata, to_status, actor, level, comment).unwrap()
            self._repo.save_aggregate(content, expected, record)
        logger.info(
            "Content %s moved %s → %s (version %d) by %s",
            content_id, source.value, metadata.status.value, metadata.version, actor,
        )
        return metadata

    def allowed_transitions(self, content_id: str, actor: str) -> List[TransitionRule]:
        content = self._load(content_id)
        level = self._permissions.effective_level(actor, self._permissions.ref_for_content(content.metadata))
        if level is None:
            return []
        return allowed_transitions(content.metadata.status, level)
