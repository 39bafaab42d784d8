"""Business rules for curriculum content metadata, variants and analytics."""
from __future__ import annotations
from typing import Optional

from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import (
    ContentFormat,
    ContentStatus,
    ContentType,
    CurriculumContent,
    Difficulty,
    KeyStage,
    LearningStyle,
    Region,
    Subject,
)

# Fields a caller may change through update(); everything else is managed.
UPDATABLE_FIELDS = {
    "title",
    "description",
    "key_stage",
    "subject",
    "region",
    "topics",
    "learning_objectives",
    "difficulty",
    "content_type",
    "content_format",
    "estimated_duration",
    "prerequisite_ids",
    "related_content_ids",
}

_ENUM_FIELDS = {
    "key_stage": (KeyStage, "key stage"),
    "subject": (Subject, "subject"),
    "region": (Region, "region"),
    "difficulty": (Difficulty, "difficulty"),
    "content_type": (ContentType, "content type"),
    "content_format": (ContentFormat, "content format"),
}

_LIST_FIELDS = {"topics", "learning_objectives", "prerequisite_ids", "related_content_ids"}

DELETABLE_STATUSES = {ContentStatus.DRAFT, ContentStatus.ARCHIVED}


def _normalise_fields(data: dict) -> dict:
    """Coerce enum and list fields; raises ValidationError on bad input."""
    out = {}
    for key, value in data.items():
        if key in _ENUM_FIELDS:
            enum_cls, label = _ENUM_FIELDS[key]
            out[key] = parse_enum(enum_cls, value, label)
        elif key in _LIST_FIELDS:
            if value is None:
                value = []
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ValidationError(f"'{key}' must be a list of strings.")
            out[key] = [v.strip() for v in value if v.strip()]
        elif key == "estimated_duration":
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError("'estimated_duration' must be a non-negative number of minutes.")
            out[key] = value
        elif key == "title":
            title = (value or "").strip()
            if not title:
                raise ValidationError("Content 'title' is required and cannot be empty.")
            out[key] = title
        elif key == "description":
            out[key] = value or ""
        else:
            out[key] = value
    return out


def validate_metadata_input(data: dict) -> Result[dict]:
    """Validates the metadata supplied when creating a content item."""
    unknown = set(data) - UPDATABLE_FIELDS
    if unknown:
        return Result.fail(ValidationError(f"Unknown or read-only metadata fields: {sorted(unknown)}."))
    for required in ("title", "key_stage", "subject"):
        if data.get(required) in (None, ""):
            return Result.fail(ValidationError(f"Content '{required}' is required and cannot be empty."))
    try:
        return Result.ok(_normalise_fields(data))
    except ValidationError as e:
        return Result.fail(e)


def validate_metadata_update(changes: dict) -> Result[dict]:
    """Validates a partial metadata update. Managed fields cannot be supplied."""
    if not changes:
        return Result.fail(ValidationError("Update must change at least one field."))
    rejected = set(changes) - UPDATABLE_FIELDS
    if rejected:
        return Result.fail(ValidationError(
            f"Fields {sorted(rejected)} cannot be updated directly."
        ))
    try:
        return Result.ok(_normalise_fields(changes))
    except ValidationError as e:
        return Result.fail(e)


def validate_body(body: Optional[str]) -> Result[str]:
    if not isinstance(body, str) or not body.strip():
        return Result.fail(ValidationError("Variant body is required and cannot be empty."))
    return Result.ok(body)


def validate_learning_style(style) -> Result[LearningStyle]:
    try:
        return Result.ok(parse_enum(LearningStyle, style, "learning style"))
    except ValidationError as e:
        return Result.fail(e)


def validate_deletable(content: CurriculumContent) -> Result[CurriculumContent]:
    status = content.metadata.status
    if status not in DELETABLE_STATUSES:
        return Result.fail(InvalidStateError(
            f"Content '{content.id}' is '{status.value}'. Only draft or archived content can be "
            "deleted; archive it first."
        ))
    return Result.ok(content)


def validate_new_style(content: CurriculumContent, style: LearningStyle) -> Result[LearningStyle]:
    if content.variant_for_style(style) is not None:
        return Result.fail(ConflictError(
            f"Content '{content.id}' already has a '{style.value}' variant; update it instead."
        ))
    return Result.ok(style)


def validate_variant_exists(content: CurriculumContent, variant_id: str) -> Result[str]:
    if content.find_variant(variant_id) is None:
        return Result.fail(NotFoundError(
            f"Variant '{variant_id}' not found for content '{content.id}'."
        ))
    return Result.ok(variant_id)


def validate_variant_removal(
    content: CurriculumContent,
    variant_id: str,
    replacement_default_id: Optional[str],
) -> Result[Optional[str]]:
    """
    The default variant may only be removed when a replacement default that
    survives the removal is supplied in the same call.
    """
    exists = validate_variant_exists(content, variant_id)
    if not exists.is_success:
        return Result.fail(exists.error)

    if variant_id != content.default_variant_id:
        return Result.ok(None)

    if not replacement_default_id:
        return Result.fail(InvalidStateError(
            f"Variant '{variant_id}' is the default for content '{content.id}'. "
            "Supply a replacement default or repoint the default first."
        ))
    if replacement_default_id == variant_id:
        return Result.fail(ValidationError("Replacement default cannot be the variant being removed."))
    replacement = validate_variant_exists(content, replacement_default_id)
    if not replacement.is_success:
        return Result.fail(replacement.error)
    return Result.ok(replacement_default_id)


def validate_rating(rating) -> Result[int]:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        return Result.fail(ValidationError("Rating must be an integer from 1 to 5."))
    return Result.ok(rating)
