"""Application service — variant maintenance and learning-style adaptation."""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from curriculum_content.application.content_store import ContentStoreService
from curriculum_content.core import config
from curriculum_content.domain.common.enums import parse_enum
from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.content.models import ChangeType, ContentVariant, CurriculumContent, LearningStyle
from curriculum_content.domain.content.service import ContentDomainService, variant_for
from curriculum_content.domain.permission.models import PermissionLevel
from curriculum_content.domain.variant.service import AdaptationDomainService, AdaptationOutcome, Generator
from curriculum_content.domain.variant.templates import template_generator

logger = logging.getLogger(__name__)


class VariantAppService(ContentStoreService):
    def __init__(self, repo, permissions, locks, max_workers: Optional[int] = None):
        super().__init__(repo, permissions, locks)
        self._content_domain = ContentDomainService()
        self._adaptation = AdaptationDomainService(self._content_domain)
        self._max_workers = max_workers or config.ADAPTATION_MAX_WORKERS

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def variant_for(self, content_id: str, style=None) -> ContentVariant:
        """The variant a learner with ``style`` should see."""
        parsed = parse_enum(LearningStyle, style, "learning style") if style else None
        return variant_for(self._load(content_id), parsed)

    # ------------------------------------------------------------------
    # Adaptation
    # ------------------------------------------------------------------
    def adapt(self, content_id: str, style, actor: str, generator: Optional[Generator] = None) -> ContentVariant:
        """
        Produce or refresh the ``style`` variant from the default variant's body.
        Blocks until the generator returns. Without a generator the built-in
        template for the style is used.
        """
        with self._mutation(content_id, "adapt") as content:
            self._require(actor, content, PermissionLevel.EDIT, "adapt variants")
            gen = generator or template_generator(style)
            variant, record = self._adaptation.adapt(content, style, gen, actor).unwrap()
            expected = None if record.change_type == ChangeType.CREATE else record.previous_version
            self._repo.save_variant(variant, expected, record)
        logger.info(
            "Adapted %s variant of content %s (variant version %d) by %s",
            variant.learning_style.value, content_id, variant.version, actor,
        )
        return variant

    def adapt_many(
        self,
        content_id: str,
        styles: Iterable,
        actor: str,
        generator: Optional[Generator] = None,
    ) -> List[AdaptationOutcome]:
        """
        One independent adapt per style, run concurrently. A failure for one
        style is reported in its outcome and never undoes the others.
        """
        parsed = [parse_enum(LearningStyle, s, "learning style") for s in styles]
        if not parsed:
            raise ValidationError("At least one learning style is required.")
        if len(set(parsed)) != len(parsed):
            raise ValidationError("Each learning style may appear only once per request.")
        self._require(actor, self._load(content_id), PermissionLevel.EDIT, "adapt variants")

        def run(style: LearningStyle) -> AdaptationOutcome:
            try:
                return AdaptationOutcome(style=style, variant=self.adapt(content_id, style, actor, generator))
            except Exception as e:  # per-style isolation; reported in the outcome
                logger.error("Adaptation of %s variant for content %s failed: %s", style.value, content_id, e)
                return AdaptationOutcome(style=style, error=e)

        workers = max(1, min(self._max_workers, len(parsed)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(run, parsed))

    # ------------------------------------------------------------------
    # Manual maintenance
    # ------------------------------------------------------------------
    def add_variant(
        self,
        content_id: str,
        style,
        body: str,
        actor: str,
        media_refs: Optional[List[str]] = None,
        interactive_element: Optional[dict] = None,
    ) -> ContentVariant:
        with self._mutation(content_id, "add variant") as content:
            self._require(actor, content, PermissionLevel.EDIT, "add variants")
            variant, record = self._content_domain.add_variant(
                content, style, body, actor, media_refs, interactive_element,
            ).unwrap()
            self._repo.save_variant(variant, None, record)
        logger.info("Added %s variant %s to content %s", variant.learning_style.value, variant.id, content_id)
        return variant

    def update_variant(
        self,
        content_id: str,
        variant_id: str,
        body: str,
        actor: str,
        media_refs: Optional[List[str]] = None,
        interactive_element: Optional[dict] = None,
    ) -> ContentVariant:
        with self._mutation(content_id, "update variant") as content:
            self._require(actor, content, PermissionLevel.EDIT, "edit variants")
            variant, record = self._content_domain.update_variant(
                content, variant_id, body, actor, media_refs, interactive_element,
            ).unwrap()
            self._repo.save_variant(variant, record.previous_version, record)
        logger.info("Updated variant %s of content %s to version %d", variant_id, content_id, variant.version)
        return variant

    def set_default_variant(self, content_id: str, variant_id: str, actor: str) -> CurriculumContent:
        with self._mutation(content_id, "set default variant") as content:
            self._require(actor, content, PermissionLevel.EDIT, "change the default variant")
            expected = content.metadata.version
            content, record = self._content_domain.set_default_variant(content, variant_id, actor).unwrap()
            self._repo.save_aggregate(content, expected, record)
        logger.info("Default variant of content %s is now %s", content_id, variant_id)
        return content

    def remove_variant(
        self,
        content_id: str,
        variant_id: str,
        actor: str,
        replacement_default_id: Optional[str] = None,
    ) -> CurriculumContent:
        with self._mutation(content_id, "remove variant") as content:
            self._require(actor, content, PermissionLevel.EDIT, "remove variants")
            expected = content.metadata.version
            content, removed, record = self._content_domain.remove_variant(
                content, variant_id, actor, replacement_default_id,
            ).unwrap()
            self._repo.remove_variant(content, removed.id, expected, record)
        logger.info("Removed variant %s from content %s", variant_id, content_id)
        return content
