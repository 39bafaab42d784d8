"""Domain service — applies workflow transitions to content metadata."""
from __future__ import annotations
from typing import Optional, Tuple

from curriculum_content.domain.common.audit import now_iso
from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import ChangeType, ContentChangeRecord, ContentMetadata, ContentStatus
from curriculum_content.domain.content.service import change_record
from curriculum_content.domain.permission.models import PermissionLevel
from curriculum_content.domain.workflow.rules import validate_status_transition


def parse_status(value) -> Result[ContentStatus]:
    try:
        return Result.ok(parse_enum(ContentStatus, value, "status"))
    except ValidationError as e:
        return Result.fail(e)


class WorkflowDomainService:

    def transition(
        self,
        metadata: ContentMetadata,
        target,
        actor: str,
        level: Optional[PermissionLevel],
        comment: Optional[str] = None,
    ) -> Result[Tuple[ContentMetadata, ContentChangeRecord]]:
        """Move content to ``target``; status and version change together."""
        parsed = parse_status(target)
        if not parsed.is_success:
            return Result.fail(parsed.error)

        checked = validate_status_transition(metadata.status, parsed.value, level, comment)
        if not checked.is_success:
            return Result.fail(checked.error)

        now = now_iso()
        source = metadata.status
        previous = metadata.version
        metadata.status = parsed.value
        metadata.version = previous + 1
        metadata.updated_by = actor
        metadata.updated_at = now

        if comment and comment.strip():
            description = f"{source.value} → {parsed.value.value}: {comment.strip()}"
        else:
            description = f"Status changed from {source.value} to {parsed.value.value}"
        return Result.ok((metadata, change_record(
            metadata.id, actor, previous, description, ChangeType.STATUS, timestamp=now,
        )))
