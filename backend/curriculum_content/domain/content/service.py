"""Domain service — pure business logic for content lifecycle, variants and the change ledger."""
from __future__ import annotations
from dataclasses import replace
from typing import List, Optional, Tuple

from curriculum_content.domain.common.audit import new_id, now_iso
from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import (
    ChangeType,
    ContentChangeRecord,
    ContentMetadata,
    ContentStatus,
    ContentVariant,
    CurriculumContent,
    LearningStyle,
)
from curriculum_content.domain.content.rules import (
    validate_body,
    validate_deletable,
    validate_learning_style,
    validate_metadata_input,
    validate_metadata_update,
    validate_new_style,
    validate_rating,
    validate_variant_exists,
    validate_variant_removal,
)


def change_record(
    content_id: str,
    user_id: str,
    previous_version: int,
    description: str,
    change_type: ChangeType,
    variant_id: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> ContentChangeRecord:
    return ContentChangeRecord(
        id=new_id(),
        content_id=content_id,
        user_id=user_id,
        timestamp=timestamp or now_iso(),
        previous_version=previous_version,
        new_version=previous_version + 1,
        description=description,
        change_type=change_type,
        variant_id=variant_id,
    )


def _bump(metadata: ContentMetadata, actor: str, now: str) -> int:
    """Advance the metadata version and stamp audit fields. Returns the prior version."""
    previous = metadata.version
    metadata.version = previous + 1
    metadata.updated_by = actor
    metadata.updated_at = now
    return previous


def _bump_variant(variant: ContentVariant, actor: str, now: str) -> int:
    previous = variant.version
    variant.version = previous + 1
    variant.updated_by = actor
    variant.updated_at = now
    return previous


class ContentDomainService:
    """
    Pure domain operations — no I/O. All methods return Result[T].
    The application layer calls these and then persists via the repository.
    """

    def create_content(
        self,
        actor: str,
        data: dict,
        initial_style,
        initial_body: str,
        media_refs: Optional[List[str]] = None,
        interactive_element: Optional[dict] = None,
    ) -> Result[Tuple[CurriculumContent, ContentChangeRecord]]:
        """Create a brand-new content item in draft, version 1, with its default variant."""
        fields = validate_metadata_input(data)
        if not fields.is_success:
            return Result.fail(fields.error)
        style = validate_learning_style(initial_style)
        if not style.is_success:
            return Result.fail(style.error)
        body = validate_body(initial_body)
        if not body.is_success:
            return Result.fail(body.error)

        now = now_iso()
        content_id = new_id()
        metadata = ContentMetadata(
            id=content_id,
            status=ContentStatus.DRAFT,
            version=1,
            created_by=actor,
            created_at=now,
            updated_by=actor,
            updated_at=now,
            **fields.value,
        )
        variant = ContentVariant(
            id=new_id(),
            content_id=content_id,
            learning_style=style.value,
            body=body.value,
            media_refs=list(media_refs or []),
            interactive_element=interactive_element,
            version=1,
            created_by=actor,
            created_at=now,
            updated_by=actor,
            updated_at=now,
        )
        content = CurriculumContent(metadata=metadata, variants=[variant], default_variant_id=variant.id)
        record = change_record(
            content_id, actor, 0, f"Created '{metadata.title}'", ChangeType.CREATE, timestamp=now,
        )
        return Result.ok((content, record))

    def update_metadata(
        self,
        content: CurriculumContent,
        changes: dict,
        actor: str,
        description: Optional[str] = None,
    ) -> Result[Tuple[CurriculumContent, ContentChangeRecord]]:
        """Merge supplied fields into the metadata and bump the version."""
        validated = validate_metadata_update(changes)
        if not validated.is_success:
            return Result.fail(validated.error)

        now = now_iso()
        metadata = content.metadata
        for key, value in validated.value.items():
            setattr(metadata, key, value)
        previous = _bump(metadata, actor, now)
        note = description or f"Updated {', '.join(sorted(validated.value))}"
        return Result.ok((content, change_record(
            metadata.id, actor, previous, note, ChangeType.UPDATE, timestamp=now,
        )))

    def prepare_delete(self, content: CurriculumContent, actor: str) -> Result[ContentChangeRecord]:
        """The final ledger entry written when a content item is hard-deleted."""
        allowed = validate_deletable(content)
        if not allowed.is_success:
            return Result.fail(allowed.error)
        return Result.ok(change_record(
            content.id, actor, content.metadata.version,
            f"Deleted '{content.metadata.title}'", ChangeType.DELETE,
        ))

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------
    def add_variant(
        self,
        content: CurriculumContent,
        style,
        body: str,
        actor: str,
        media_refs: Optional[List[str]] = None,
        interactive_element: Optional[dict] = None,
    ) -> Result[Tuple[ContentVariant, ContentChangeRecord]]:
        parsed = validate_learning_style(style)
        if not parsed.is_success:
            return Result.fail(parsed.error)
        unique = validate_new_style(content, parsed.value)
        if not unique.is_success:
            return Result.fail(unique.error)
        checked = validate_body(body)
        if not checked.is_success:
            return Result.fail(checked.error)

        now = now_iso()
        variant = ContentVariant(
            id=new_id(),
            content_id=content.id,
            learning_style=parsed.value,
            body=checked.value,
            media_refs=list(media_refs or []),
            interactive_element=interactive_element,
            version=1,
            created_by=actor,
            created_at=now,
            updated_by=actor,
            updated_at=now,
        )
        content.variants.append(variant)
        record = change_record(
            content.id, actor, 0, f"Added {parsed.value.value} variant",
            ChangeType.CREATE, variant_id=variant.id, timestamp=now,
        )
        return Result.ok((variant, record))

    def update_variant(
        self,
        content: CurriculumContent,
        variant_id: str,
        body: str,
        actor: str,
        media_refs: Optional[List[str]] = None,
        interactive_element: Optional[dict] = None,
        description: Optional[str] = None,
    ) -> Result[Tuple[ContentVariant, ContentChangeRecord]]:
        """Replace a variant's body in place; the variant's own version advances."""
        exists = validate_variant_exists(content, variant_id)
        if not exists.is_success:
            return Result.fail(exists.error)
        checked = validate_body(body)
        if not checked.is_success:
            return Result.fail(checked.error)

        now = now_iso()
        variant = content.find_variant(variant_id)
        variant.body = checked.value
        if media_refs is not None:
            variant.media_refs = list(media_refs)
        if interactive_element is not None:
            variant.interactive_element = interactive_element
        previous = _bump_variant(variant, actor, now)
        note = description or f"Updated {variant.learning_style.value} variant"
        return Result.ok((variant, change_record(
            content.id, actor, previous, note, ChangeType.UPDATE, variant_id=variant.id, timestamp=now,
        )))

    def set_default_variant(
        self, content: CurriculumContent, variant_id: str, actor: str,
    ) -> Result[Tuple[CurriculumContent, ContentChangeRecord]]:
        exists = validate_variant_exists(content, variant_id)
        if not exists.is_success:
            return Result.fail(exists.error)
        if content.default_variant_id == variant_id:
            return Result.fail(ValidationError(f"Variant '{variant_id}' is already the default."))

        now = now_iso()
        content.default_variant_id = variant_id
        style = content.find_variant(variant_id).learning_style.value
        previous = _bump(content.metadata, actor, now)
        return Result.ok((content, change_record(
            content.id, actor, previous, f"Default variant set to {style}", ChangeType.UPDATE, timestamp=now,
        )))

    def remove_variant(
        self,
        content: CurriculumContent,
        variant_id: str,
        actor: str,
        replacement_default_id: Optional[str] = None,
    ) -> Result[Tuple[CurriculumContent, ContentVariant, ContentChangeRecord]]:
        """Drop a variant, repointing the default in the same step when required."""
        checked = validate_variant_removal(content, variant_id, replacement_default_id)
        if not checked.is_success:
            return Result.fail(checked.error)

        now = now_iso()
        removed = content.find_variant(variant_id)
        content.variants = [v for v in content.variants if v.id != variant_id]
        note = f"Removed {removed.learning_style.value} variant"
        if checked.value:
            content.default_variant_id = checked.value
            note += f"; default variant set to {content.default_variant.learning_style.value}"
        previous = _bump(content.metadata, actor, now)
        return Result.ok((content, removed, change_record(
            content.id, actor, previous, note, ChangeType.UPDATE, timestamp=now,
        )))

    # ------------------------------------------------------------------
    # Assessment links
    # ------------------------------------------------------------------
    def link_assessment(
        self, content: CurriculumContent, assessment_id: str, actor: str,
    ) -> Result[Tuple[CurriculumContent, ContentChangeRecord]]:
        assessment_id = (assessment_id or "").strip()
        if not assessment_id:
            return Result.fail(ValidationError("Assessment id is required."))
        if assessment_id in content.assessment_ids:
            return Result.fail(ValidationError(f"Assessment '{assessment_id}' is already linked."))

        now = now_iso()
        content.assessment_ids.append(assessment_id)
        previous = _bump(content.metadata, actor, now)
        return Result.ok((content, change_record(
            content.id, actor, previous, f"Linked assessment {assessment_id}", ChangeType.UPDATE, timestamp=now,
        )))

    def unlink_assessment(
        self, content: CurriculumContent, assessment_id: str, actor: str,
    ) -> Result[Tuple[CurriculumContent, ContentChangeRecord]]:
        if assessment_id not in content.assessment_ids:
            return Result.fail(ValidationError(f"Assessment '{assessment_id}' is not linked."))

        now = now_iso()
        content.assessment_ids = [a for a in content.assessment_ids if a != assessment_id]
        previous = _bump(content.metadata, actor, now)
        return Result.ok((content, change_record(
            content.id, actor, previous, f"Unlinked assessment {assessment_id}", ChangeType.UPDATE, timestamp=now,
        )))

    # ------------------------------------------------------------------
    # Analytics (increment-only, unversioned)
    # ------------------------------------------------------------------
    def apply_rating(self, content: CurriculumContent, rating) -> Result[CurriculumContent]:
        checked = validate_rating(rating)
        if not checked.is_success:
            return Result.fail(checked.error)
        stats = content.analytics
        content.analytics = replace(
            stats,
            rating_count=stats.rating_count + 1,
            rating_sum=stats.rating_sum + checked.value,
        )
        return Result.ok(content)


def variant_for(content: CurriculumContent, style: Optional[LearningStyle]) -> Optional[ContentVariant]:
    """The variant to show a learner: their style, else multimodal, else the default."""
    if style is not None:
        match = content.variant_for_style(style)
        if match is not None:
            return match
    multimodal = content.variant_for_style(LearningStyle.MULTIMODAL)
    return multimodal or content.default_variant
