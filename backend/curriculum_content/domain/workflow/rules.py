"""Business rules for the publishing workflow — an explicit, cyclic edge table."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from curriculum_content.domain.common.errors import InvalidTransition, MissingComment, PermissionDenied
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import ContentStatus
from curriculum_content.domain.permission.models import PermissionLevel

S = ContentStatus
L = PermissionLevel


@dataclass(frozen=True)
class TransitionRule:
    from_status: ContentStatus
    to_status: ContentStatus
    min_level: PermissionLevel
    comment_required: bool


_EDGES = [
    (S.DRAFT, S.REVIEW, L.EDIT, False),
    (S.REVIEW, S.APPROVED, L.APPROVE, False),
    (S.REVIEW, S.REJECTED, L.APPROVE, True),
    (S.REVIEW, S.DRAFT, L.APPROVE, True),
    (S.APPROVED, S.PUBLISHED, L.ADMIN, False),
    (S.APPROVED, S.DRAFT, L.EDIT, True),
    (S.PUBLISHED, S.ARCHIVED, L.ADMIN, False),
    (S.PUBLISHED, S.DRAFT, L.ADMIN, True),
    (S.REJECTED, S.DRAFT, L.EDIT, False),
    (S.ARCHIVED, S.PUBLISHED, L.ADMIN, False),
    (S.ARCHIVED, S.DRAFT, L.ADMIN, False),
]

TRANSITIONS: Dict[Tuple[ContentStatus, ContentStatus], TransitionRule] = {
    (src, dst): TransitionRule(src, dst, level, comment) for src, dst, level, comment in _EDGES
}


def find_rule(current: ContentStatus, target: ContentStatus) -> Optional[TransitionRule]:
    return TRANSITIONS.get((current, target))


def allowed_transitions(current: ContentStatus, level: Optional[PermissionLevel] = None) -> List[TransitionRule]:
    """Edges leaving ``current``; restricted to those ``level`` may take when given."""
    return [
        rule for (src, _), rule in TRANSITIONS.items()
        if src == current and (level is None or level >= rule.min_level)
    ]


def validate_status_transition(
    current: ContentStatus,
    target: ContentStatus,
    level: Optional[PermissionLevel],
    comment: Optional[str] = None,
) -> Result[TransitionRule]:
    """
    Checks an edge against the table, the caller's capability and the comment
    requirement, in that order. Edges missing from the table are rejected
    whatever the caller holds.
    """
    rule = find_rule(current, target)
    if rule is None:
        reachable = [r.to_status.value for r in allowed_transitions(current)]
        return Result.fail(InvalidTransition(
            f"Invalid transition: '{current.value}' → '{target.value}'. "
            f"From '{current.value}' only {reachable} are allowed."
        ))

    if level is None or level < rule.min_level:
        held = level.label if level else "none"
        return Result.fail(PermissionDenied(
            f"Transition '{current.value}' → '{target.value}' requires '{rule.min_level.label}' "
            f"(holds '{held}')."
        ))

    if rule.comment_required and not (comment or "").strip():
        return Result.fail(MissingComment(
            f"Transition '{current.value}' → '{target.value}' requires a comment."
        ))

    return Result.ok(rule)
