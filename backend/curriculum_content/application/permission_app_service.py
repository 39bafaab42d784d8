"""Application service — permission grants and capability resolution."""
from __future__ import annotations
import logging
from typing import List, Optional

from curriculum_content.domain.common.audit import new_id, now_iso
from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import NotFoundError
from curriculum_content.domain.content.models import ContentMetadata
from curriculum_content.domain.permission.models import ContentRef, PermissionGrant, PermissionLevel, Role
from curriculum_content.domain.permission.rules import require_permission, resolve_level, validate_grant
from curriculum_content.domain.unit.models import CurriculumUnit
from curriculum_content.persistence.interfaces.content_repository import ContentRepository
from curriculum_content.persistence.interfaces.permission_repository import PermissionRepository

logger = logging.getLogger(__name__)


class PermissionAppService:
    def __init__(self, repo: PermissionRepository, content_repo: ContentRepository):
        self._repo = repo
        self._content_repo = content_repo

    # ------------------------------------------------------------------
    # Scope helpers
    # ------------------------------------------------------------------
    @staticmethod
    def ref_for_content(metadata: ContentMetadata) -> ContentRef:
        return ContentRef(metadata.id, metadata.subject.value, metadata.key_stage.value)

    @staticmethod
    def ref_for_unit(unit: CurriculumUnit) -> ContentRef:
        return ContentRef(None, unit.subject.value, unit.key_stage.value)

    def _ref_for_content_id(self, content_id: str) -> ContentRef:
        content = self._content_repo.get_by_id(content_id)
        if content is None:
            raise NotFoundError(f"Content '{content_id}' not found.")
        return self.ref_for_content(content.metadata)

    def _ref_for_grant(self, grant: PermissionGrant) -> ContentRef:
        if grant.content_id:
            return self._ref_for_content_id(grant.content_id)
        return ContentRef(None, grant.subject, grant.key_stage)

    # ------------------------------------------------------------------
    # Resolution (read-only)
    # ------------------------------------------------------------------
    def effective_level(self, user_id: str, ref: ContentRef) -> Optional[PermissionLevel]:
        return resolve_level(self._repo.list_for_user(user_id), user_id, ref)

    def has_permission(self, user_id: str, content_id: str, required) -> bool:
        required = parse_enum(PermissionLevel, required, "permission level")
        level = self.effective_level(user_id, self._ref_for_content_id(content_id))
        return level is not None and level >= required

    def require(self, user_id: str, ref: ContentRef, required: PermissionLevel, action: str) -> PermissionLevel:
        grants = self._repo.list_for_user(user_id)
        return require_permission(grants, user_id, ref, required, action).unwrap()

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------
    def list_grants(self, user_id: str) -> List[PermissionGrant]:
        return self._repo.list_for_user(user_id)

    def grant(
        self,
        actor: str,
        user_id: str,
        level,
        content_id: Optional[str] = None,
        subject: Optional[str] = None,
        key_stage: Optional[str] = None,
    ) -> PermissionGrant:
        """Grant ``level`` at one scope. The actor must hold admin at that scope."""
        parsed_level = parse_enum(PermissionLevel, level, "permission level")

        grant = PermissionGrant(
            id=new_id(),
            user_id=(user_id or "").strip(),
            level=parsed_level,
            content_id=content_id or None,
            subject=subject or None,
            key_stage=key_stage or None,
            granted_by=actor,
            granted_at=now_iso(),
        )
        grant = validate_grant(grant).unwrap()
        self.require(actor, self._ref_for_grant(grant), PermissionLevel.ADMIN, "grant permissions")
        self._repo.add_grant(grant)
        logger.info(
            "Granted %s to %s on %s=%s by %s",
            grant.level.label, grant.user_id, grant.scope_kind.value,
            grant.content_id or grant.subject or grant.key_stage, actor,
        )
        return grant

    def grant_role(self, actor: str, user_id: str, role, **scope) -> PermissionGrant:
        """A role is shorthand for granting its capability level."""
        parsed = parse_enum(Role, role, "role")
        return self.grant(actor, user_id, parsed.level, **scope)

    def revoke(self, actor: str, grant_id: str) -> None:
        grant = self._repo.get_grant(grant_id)
        if grant is None:
            raise NotFoundError(f"Permission grant '{grant_id}' not found.")
        self.require(actor, self._ref_for_grant(grant), PermissionLevel.ADMIN, "revoke permissions")
        if not self._repo.remove_grant(grant_id):
            raise NotFoundError(f"Permission grant '{grant_id}' not found.")
        logger.info("Revoked grant %s from %s by %s", grant_id, grant.user_id, actor)
