"""Domain service — derives learning-style variants of a content item from its source variant."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import (
    ContentChangeRecord,
    ContentVariant,
    CurriculumContent,
    LearningStyle,
)
from curriculum_content.domain.content.rules import validate_body, validate_learning_style
from curriculum_content.domain.content.service import ContentDomainService

# (prior body or None, source body) -> new body. Must be pure and must not
# raise for a non-empty source body.
Generator = Callable[[Optional[str], str], str]


@dataclass
class AdaptationOutcome:
    """Per-style result of a batch adaptation; exactly one of variant/error is set."""

    style: LearningStyle
    variant: Optional[ContentVariant] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AdaptationDomainService:

    def __init__(self, content_domain: Optional[ContentDomainService] = None):
        self._content = content_domain or ContentDomainService()

    def source_body(self, content: CurriculumContent) -> Result[str]:
        default = content.default_variant
        if default is None:
            return Result.fail(ValidationError(f"Content '{content.id}' has no default variant to adapt from."))
        return validate_body(default.body)

    def adapt(
        self,
        content: CurriculumContent,
        style,
        generator: Generator,
        actor: str,
    ) -> Result[Tuple[ContentVariant, ContentChangeRecord]]:
        """
        Produce or refresh the variant for ``style``.

        An existing variant is rewritten in place from ``generator(prior, source)``;
        a missing one is inserted from ``generator(None, source)``. Exceptions
        raised by the generator are not caught here.
        """
        parsed = validate_learning_style(style)
        if not parsed.is_success:
            return Result.fail(parsed.error)
        source = self.source_body(content)
        if not source.is_success:
            return Result.fail(source.error)

        existing = content.variant_for_style(parsed.value)
        prior = existing.body if existing is not None else None
        generated = generator(prior, source.value)
        if not isinstance(generated, str) or not generated.strip():
            return Result.fail(ValidationError(
                f"Generator returned an empty body for the {parsed.value.value} variant."
            ))

        if existing is not None:
            return self._content.update_variant(
                content, existing.id, generated, actor,
                description=f"Adapted {parsed.value.value} variant",
            )
        return self._content.add_variant(content, parsed.value, generated, actor)

