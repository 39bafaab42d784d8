"""Business rules for permission grants and their resolution."""
from __future__ import annotations
from typing import Iterable, Optional

from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import PermissionDenied, ValidationError
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import KeyStage, Subject
from curriculum_content.domain.permission.models import (
    SCOPE_SPECIFICITY,
    ContentRef,
    PermissionGrant,
    PermissionLevel,
)


def validate_grant(grant: PermissionGrant) -> Result[PermissionGrant]:
    """A grant must name a user, a level and exactly one scope."""
    if not (grant.user_id or "").strip():
        return Result.fail(ValidationError("Permission grant requires a 'user_id'."))

    scopes = [s for s in (grant.content_id, grant.subject, grant.key_stage) if s]
    if len(scopes) != 1:
        return Result.fail(ValidationError(
            "Permission grant must set exactly one of 'content_id', 'subject' or 'key_stage' "
            f"({len(scopes)} set)."
        ))

    try:
        grant.level = parse_enum(PermissionLevel, grant.level, "permission level")
        if grant.subject:
            grant.subject = parse_enum(Subject, grant.subject, "subject").value
        if grant.key_stage:
            grant.key_stage = parse_enum(KeyStage, grant.key_stage, "key stage").value
    except ValidationError as e:
        return Result.fail(e)

    return Result.ok(grant)


def grant_matches(grant: PermissionGrant, user_id: str, ref: ContentRef) -> bool:
    if grant.user_id != user_id:
        return False
    if grant.content_id:
        return ref.content_id is not None and grant.content_id == ref.content_id
    if grant.subject:
        return grant.subject == ref.subject
    if grant.key_stage:
        return grant.key_stage == ref.key_stage
    return False


def deciding_grant(grants: Iterable[PermissionGrant], user_id: str, ref: ContentRef) -> Optional[PermissionGrant]:
    """
    Pick the grant that determines a user's capability on ``ref``.

    The highest level among all matching grants wins; a narrower scope only
    breaks ties between equal levels (content beats subject beats key stage).
    A narrow low grant therefore never hides a broader higher one.
    """
    matching = [g for g in grants if grant_matches(g, user_id, ref)]
    if not matching:
        return None
    return min(matching, key=lambda g: (-int(g.level), SCOPE_SPECIFICITY[g.scope_kind]))


def resolve_level(grants: Iterable[PermissionGrant], user_id: str, ref: ContentRef) -> Optional[PermissionLevel]:
    grant = deciding_grant(grants, user_id, ref)
    return grant.level if grant else None


def has_permission(
    grants: Iterable[PermissionGrant],
    user_id: str,
    ref: ContentRef,
    required: PermissionLevel,
) -> bool:
    level = resolve_level(grants, user_id, ref)
    return level is not None and level >= required


def require_permission(
    grants: Iterable[PermissionGrant],
    user_id: str,
    ref: ContentRef,
    required: PermissionLevel,
    action: str,
) -> Result[PermissionLevel]:
    level = resolve_level(grants, user_id, ref)
    if level is None or level < required:
        held = level.label if level else "none"
        return Result.fail(PermissionDenied(
            f"User '{user_id}' needs '{required.label}' to {action} (holds '{held}')."
        ))
    return Result.ok(level)
