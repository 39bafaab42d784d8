"""Shared plumbing for application services that mutate content: lock, load, authorise."""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator

from curriculum_content.application.locks import KeyedLock
from curriculum_content.application.permission_app_service import PermissionAppService
from curriculum_content.domain.common.errors import ContentError, NotFoundError
from curriculum_content.domain.content.models import CurriculumContent
from curriculum_content.domain.permission.models import PermissionLevel
from curriculum_content.persistence.interfaces.content_repository import ContentRepository

logger = logging.getLogger(__name__)


class ContentStoreService:

    def __init__(self, repo: ContentRepository, permissions: PermissionAppService, locks: KeyedLock):
        self._repo = repo
        self._permissions = permissions
        self._locks = locks

    def _load(self, content_id: str) -> CurriculumContent:
        content = self._repo.get_by_id(content_id)
        if content is None:
            raise NotFoundError(f"Content '{content_id}' not found.")
        return content

    @contextmanager
    def _mutation(self, content_id: str, action: str) -> Iterator[CurriculumContent]:
        """Hold the item's lock and yield a fresh copy of it; rejected operations are logged."""
        try:
            with self._locks.hold(f"content:{content_id}"):
                yield self._load(content_id)
        except ContentError as e:
            logger.warning("Rejected %s on content %s: %s", action, content_id, e.message)
            raise

    def _require(self, actor: str, content: CurriculumContent, level: PermissionLevel, action: str) -> PermissionLevel:
        ref = self._permissions.ref_for_content(content.metadata)
        return self._permissions.require(actor, ref, level, action)
