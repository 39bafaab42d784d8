"""Domain service — pure business logic for curriculum unit composition."""
from __future__ import annotations
from typing import Dict, List, Optional

from curriculum_content.domain.common.audit import new_id, now_iso
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import ContentStatus
from curriculum_content.domain.permission.models import PermissionLevel
from curriculum_content.domain.unit.models import CurriculumUnit, IntegrityWarning
from curriculum_content.domain.unit.rules import (
    validate_add_content,
    validate_permutation,
    validate_prerequisites,
    validate_remove_content,
    validate_unit_input,
    validate_unit_update,
)
from curriculum_content.domain.workflow.rules import validate_status_transition
from curriculum_content.domain.workflow.service import parse_status


def _touch(unit: CurriculumUnit, actor: str) -> None:
    unit.version += 1
    unit.updated_by = actor
    unit.updated_at = now_iso()


class UnitDomainService:
    """Pure unit operations — no I/O. All methods return Result[T]."""

    def create_unit(self, actor: str, data: dict, graph: Dict[str, List[str]]) -> Result[CurriculumUnit]:
        fields = validate_unit_input(data)
        if not fields.is_success:
            return Result.fail(fields.error)

        now = now_iso()
        unit = CurriculumUnit(
            id=new_id(),
            status=ContentStatus.DRAFT,
            version=1,
            created_by=actor,
            created_at=now,
            updated_by=actor,
            updated_at=now,
            **fields.value,
        )
        prereqs = validate_prerequisites(unit.id, unit.prerequisite_unit_ids, graph)
        if not prereqs.is_success:
            return Result.fail(prereqs.error)
        return Result.ok(unit)

    def update_unit(
        self, unit: CurriculumUnit, changes: dict, actor: str, graph: Dict[str, List[str]],
    ) -> Result[CurriculumUnit]:
        validated = validate_unit_update(changes)
        if not validated.is_success:
            return Result.fail(validated.error)
        if "prerequisite_unit_ids" in validated.value:
            prereqs = validate_prerequisites(unit.id, validated.value["prerequisite_unit_ids"], graph)
            if not prereqs.is_success:
                return Result.fail(prereqs.error)

        for key, value in validated.value.items():
            setattr(unit, key, value)
        _touch(unit, actor)
        return Result.ok(unit)

    def add_content(self, unit: CurriculumUnit, content_id: str, actor: str) -> Result[CurriculumUnit]:
        """Append at the tail of the consumption order."""
        checked = validate_add_content(unit, content_id)
        if not checked.is_success:
            return Result.fail(checked.error)
        unit.content_ids.append(checked.value)
        _touch(unit, actor)
        return Result.ok(unit)

    def remove_content(self, unit: CurriculumUnit, content_id: str, actor: str) -> Result[CurriculumUnit]:
        checked = validate_remove_content(unit, content_id)
        if not checked.is_success:
            return Result.fail(checked.error)
        unit.content_ids = [c for c in unit.content_ids if c != content_id]
        _touch(unit, actor)
        return Result.ok(unit)

    def reorder(self, unit: CurriculumUnit, ordering: List[str], actor: str) -> Result[CurriculumUnit]:
        checked = validate_permutation(unit.content_ids, ordering)
        if not checked.is_success:
            return Result.fail(checked.error)
        unit.content_ids = checked.value
        _touch(unit, actor)
        return Result.ok(unit)

    def transition(
        self,
        unit: CurriculumUnit,
        target,
        actor: str,
        level: Optional[PermissionLevel],
        comment: Optional[str] = None,
    ) -> Result[CurriculumUnit]:
        """Same edge table as content; member content is left untouched."""
        parsed = parse_status(target)
        if not parsed.is_success:
            return Result.fail(parsed.error)
        checked = validate_status_transition(unit.status, parsed.value, level, comment)
        if not checked.is_success:
            return Result.fail(checked.error)
        unit.status = parsed.value
        _touch(unit, actor)
        return Result.ok(unit)

    def integrity_warnings(
        self, unit: CurriculumUnit, member_statuses: Dict[str, Optional[ContentStatus]],
    ) -> List[IntegrityWarning]:
        """
        Members that are not published while the unit is. ``member_statuses``
        maps content id to status, or None when the content no longer exists.
        """
        if unit.status != ContentStatus.PUBLISHED:
            return []
        warnings = []
        for content_id in unit.content_ids:
            status = member_statuses.get(content_id)
            if status is None:
                warnings.append(IntegrityWarning(unit.id, content_id, "content no longer exists"))
            elif status != ContentStatus.PUBLISHED:
                warnings.append(IntegrityWarning(unit.id, content_id, f"content is {status.value}"))
        return warnings
