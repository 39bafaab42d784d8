"""Permission domain models: capability levels, roles and scoped grants."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class PermissionLevel(IntEnum):
    """Capability levels. Each level includes every capability below it."""

    VIEW = 1
    COMMENT = 2
    EDIT = 3
    APPROVE = 4
    ADMIN = 5

    @property
    def label(self) -> str:
        return self.name.lower()


class Role(str, Enum):
    VIEWER = "viewer"
    COMMENTER = "commenter"
    EDITOR = "editor"
    APPROVER = "approver"
    ADMIN = "admin"

    @property
    def level(self) -> PermissionLevel:
        return _ROLE_LEVELS[self]


_ROLE_LEVELS = {
    Role.VIEWER: PermissionLevel.VIEW,
    Role.COMMENTER: PermissionLevel.COMMENT,
    Role.EDITOR: PermissionLevel.EDIT,
    Role.APPROVER: PermissionLevel.APPROVE,
    Role.ADMIN: PermissionLevel.ADMIN,
}


class ScopeKind(str, Enum):
    CONTENT = "content"
    SUBJECT = "subject"
    KEY_STAGE = "key_stage"


# Lower number = narrower scope = wins during resolution.
SCOPE_SPECIFICITY = {
    ScopeKind.CONTENT: 0,
    ScopeKind.SUBJECT: 1,
    ScopeKind.KEY_STAGE: 2,
}


@dataclass
class PermissionGrant:
    id: str
    user_id: str
    level: PermissionLevel
    content_id: Optional[str] = None
    subject: Optional[str] = None
    key_stage: Optional[str] = None
    granted_by: str = ""
    granted_at: str = ""

    @property
    def scope_kind(self) -> Optional[ScopeKind]:
        if self.content_id:
            return ScopeKind.CONTENT
        if self.subject:
            return ScopeKind.SUBJECT
        if self.key_stage:
            return ScopeKind.KEY_STAGE
        return None


@dataclass(frozen=True)
class ContentRef:
    """The coordinates a grant can match: a content id, its subject and key stage.

    ``content_id`` is None for targets that are not content items, e.g. a new
    item that has not been stored yet or a curriculum unit.
    """

    content_id: Optional[str]
    subject: Optional[str]
    key_stage: Optional[str]
