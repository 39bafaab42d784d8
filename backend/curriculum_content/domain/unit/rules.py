"""Business rules for curriculum units."""
from __future__ import annotations
from collections import Counter
from typing import Dict, List

from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import (
    InvalidOrderingError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import ContentStatus, KeyStage, Subject
from curriculum_content.domain.unit.models import CurriculumUnit

UNIT_UPDATABLE_FIELDS = {"title", "description", "learning_objectives", "prerequisite_unit_ids"}
UNIT_CREATE_FIELDS = UNIT_UPDATABLE_FIELDS | {"key_stage", "subject"}


def _string_list(value, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"'{name}' must be a list of strings.")
    return [v.strip() for v in value if v.strip()]


def _normalise(data: dict) -> dict:
    out = {}
    for key, value in data.items():
        if key == "title":
            title = (value or "").strip()
            if not title:
                raise ValidationError("Unit 'title' is required and cannot be empty.")
            out[key] = title
        elif key == "description":
            out[key] = value or ""
        elif key == "key_stage":
            out[key] = parse_enum(KeyStage, value, "key stage")
        elif key == "subject":
            out[key] = parse_enum(Subject, value, "subject")
        else:
            out[key] = _string_list(value, key)
    return out


def validate_unit_input(data: dict) -> Result[dict]:
    unknown = set(data) - UNIT_CREATE_FIELDS
    if unknown:
        return Result.fail(ValidationError(
            f"Unknown unit fields: {sorted(unknown)}. Content is added with add_content."
        ))
    for required in ("title", "key_stage", "subject"):
        if data.get(required) in (None, ""):
            return Result.fail(ValidationError(f"Unit '{required}' is required and cannot be empty."))
    try:
        return Result.ok(_normalise(data))
    except ValidationError as e:
        return Result.fail(e)


def validate_unit_update(changes: dict) -> Result[dict]:
    if not changes:
        return Result.fail(ValidationError("Update must change at least one field."))
    rejected = set(changes) - UNIT_UPDATABLE_FIELDS
    if rejected:
        return Result.fail(ValidationError(
            f"Fields {sorted(rejected)} cannot be updated directly; use reorder, add_content or remove_content."
        ))
    try:
        return Result.ok(_normalise(changes))
    except ValidationError as e:
        return Result.fail(e)


def validate_permutation(current: List[str], proposed: List[str]) -> Result[List[str]]:
    """The proposed ordering must hold exactly the same ids as the current one."""
    if not isinstance(proposed, (list, tuple)):
        return Result.fail(InvalidOrderingError("Ordering must be a list of content ids."))
    if len(set(proposed)) != len(proposed):
        return Result.fail(InvalidOrderingError("Ordering contains duplicate content ids."))
    if Counter(proposed) != Counter(current):
        missing = sorted(set(current) - set(proposed))
        extra = sorted(set(proposed) - set(current))
        return Result.fail(InvalidOrderingError(
            f"Ordering must be a permutation of the unit's content (missing {missing}, unexpected {extra})."
        ))
    return Result.ok(list(proposed))


def validate_add_content(unit: CurriculumUnit, content_id: str) -> Result[str]:
    content_id = (content_id or "").strip()
    if not content_id:
        return Result.fail(ValidationError("Content id is required."))
    if content_id in unit.content_ids:
        return Result.fail(ValidationError(f"Content '{content_id}' is already part of unit '{unit.id}'."))
    return Result.ok(content_id)


def validate_remove_content(unit: CurriculumUnit, content_id: str) -> Result[str]:
    if content_id not in unit.content_ids:
        return Result.fail(NotFoundError(f"Content '{content_id}' is not part of unit '{unit.id}'."))
    return Result.ok(content_id)


def validate_prerequisites(
    unit_id: str,
    prerequisite_ids: List[str],
    graph: Dict[str, List[str]],
) -> Result[List[str]]:
    """
    ``graph`` maps every known unit id to its prerequisite ids. Rejects unknown
    prerequisites, self references and anything that would close a cycle.
    """
    if unit_id in prerequisite_ids:
        return Result.fail(ValidationError("A unit cannot be its own prerequisite."))
    unknown = [p for p in prerequisite_ids if p not in graph]
    if unknown:
        return Result.fail(NotFoundError(f"Unknown prerequisite units: {unknown}."))

    proposed = dict(graph)
    proposed[unit_id] = list(prerequisite_ids)
    stack = list(prerequisite_ids)
    seen = set()
    while stack:
        current = stack.pop()
        if current == unit_id:
            return Result.fail(ValidationError("Prerequisites would create a cycle between units."))
        if current in seen:
            continue
        seen.add(current)
        stack.extend(proposed.get(current, []))
    return Result.ok(list(prerequisite_ids))


def validate_unit_deletable(unit: CurriculumUnit) -> Result[CurriculumUnit]:
    if unit.status not in (ContentStatus.DRAFT, ContentStatus.ARCHIVED):
        return Result.fail(InvalidStateError(
            f"Unit '{unit.id}' is '{unit.status.value}'. Only draft or archived units can be deleted."
        ))
    return Result.ok(unit)


def validate_no_dependents(unit: CurriculumUnit, graph: Dict[str, List[str]]) -> Result[CurriculumUnit]:
    """A unit other units build on cannot be deleted while they still list it."""
    dependents = sorted(uid for uid, prereqs in graph.items() if unit.id in prereqs)
    if dependents:
        return Result.fail(InvalidStateError(
            f"Unit '{unit.id}' is a prerequisite of {dependents}; remove it from them first."
        ))
    return Result.ok(unit)
