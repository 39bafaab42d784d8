"""Variant maintenance and learning-style adaptation."""
import pytest

from conftest import EDITOR, VIEWER
from curriculum_content.domain.common.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from curriculum_content.domain.content.models import ChangeType, LearningStyle
from curriculum_content.domain.variant.templates import template_generator


def constant(text):
    return lambda prior, source: text


def test_adapt_creates_missing_variant(services, make_content):
    content = make_content()
    variant = services.variants.adapt(content.id, "visual", EDITOR, constant("Look at the diagram."))

    assert variant.learning_style == LearningStyle.VISUAL
    assert variant.body == "Look at the diagram."
    assert variant.version == 1
    loaded = services.content.get_content(content.id)
    assert len(loaded.variants) == 2
    assert loaded.metadata.version == 1


def test_repeated_adaptation_reuses_the_variant(services, make_content):
    content = make_content()
    first = services.variants.adapt(content.id, "visual", EDITOR, constant("Same body"))
    second = services.variants.adapt(content.id, "visual", EDITOR, constant("Same body"))
    third = services.variants.adapt(content.id, "visual", EDITOR, constant("Same body"))

    assert first.id == second.id == third.id
    assert third.version == first.version + 2
    loaded = services.content.get_content(content.id)
    assert [v.learning_style for v in loaded.variants].count(LearningStyle.VISUAL) == 1
    assert loaded.metadata.version == 1

    variant_records = [r for r in services.content.history(content.id) if r.variant_id == first.id]
    assert [(r.previous_version, r.new_version) for r in variant_records] == [(0, 1), (1, 2), (2, 3)]


def test_generator_sees_prior_and_source(services, make_content):
    content = make_content()
    seen = []

    def recording(prior, source):
        seen.append((prior, source))
        return f"v{len(seen)}"

    services.variants.adapt(content.id, "auditory", EDITOR, recording)
    services.variants.adapt(content.id, "auditory", EDITOR, recording)

    source = content.default_variant.body
    assert seen == [(None, source), ("v1", source)]


def test_empty_generated_body_is_rejected(services, make_content):
    content = make_content()
    with pytest.raises(ValidationError):
        services.variants.adapt(content.id, "visual", EDITOR, constant("   "))
    assert len(services.content.get_content(content.id).variants) == 1


def test_generator_exception_propagates(services, make_content):
    content = make_content()

    def broken(prior, source):
        raise RuntimeError("model unavailable")

    with pytest.raises(RuntimeError):
        services.variants.adapt(content.id, "visual", EDITOR, broken)
    assert len(services.content.get_content(content.id).variants) == 1


def test_adapt_requires_edit(services, make_content):
    content = make_content()
    with pytest.raises(PermissionDenied):
        services.variants.adapt(content.id, "visual", VIEWER, constant("x"))


def test_adapt_unknown_style_is_rejected(services, make_content):
    content = make_content()
    with pytest.raises(ValidationError):
        services.variants.adapt(content.id, "telepathic", EDITOR, constant("x"))


def test_batch_adaptation_isolates_failures(services, make_content):
    content = make_content()

    def flaky(prior, source):
        if "boom" in (prior or ""):
            raise RuntimeError("generator failed")
        return "fresh body"

    services.variants.add_variant(content.id, "kinesthetic", "boom", EDITOR)
    outcomes = services.variants.adapt_many(content.id, ["visual", "kinesthetic", "auditory"], EDITOR, flaky)

    by_style = {o.style: o for o in outcomes}
    assert [o.style for o in outcomes] == [
        LearningStyle.VISUAL, LearningStyle.KINESTHETIC, LearningStyle.AUDITORY,
    ]
    assert by_style[LearningStyle.VISUAL].ok
    assert by_style[LearningStyle.AUDITORY].ok
    assert not by_style[LearningStyle.KINESTHETIC].ok
    assert isinstance(by_style[LearningStyle.KINESTHETIC].error, RuntimeError)

    loaded = services.content.get_content(content.id)
    assert loaded.variant_for_style(LearningStyle.VISUAL).body == "fresh body"
    assert loaded.variant_for_style(LearningStyle.KINESTHETIC).body == "boom"


def test_batch_rejects_duplicate_or_empty_styles(services, make_content):
    content = make_content()
    with pytest.raises(ValidationError):
        services.variants.adapt_many(content.id, ["visual", "VISUAL"], EDITOR, constant("x"))
    with pytest.raises(ValidationError):
        services.variants.adapt_many(content.id, [], EDITOR, constant("x"))


def test_batch_requires_edit_up_front(services, make_content):
    content = make_content()
    with pytest.raises(PermissionDenied):
        services.variants.adapt_many(content.id, ["visual"], VIEWER, constant("x"))


def test_template_generators_are_deterministic(services, make_content):
    content = make_content()
    source = content.default_variant.body
    for style in LearningStyle:
        gen = template_generator(style)
        body = gen(None, source)
        assert body.strip()
        assert gen(body, source) == body

    variant = services.variants.adapt(content.id, "kinesthetic", EDITOR)
    assert variant.body.startswith("## Try it out")
    assert "Step 1:" in variant.body


def test_add_variant_rejects_duplicate_style(services, make_content):
    content = make_content()
    with pytest.raises(ConflictError):
        services.variants.add_variant(content.id, "reading_writing", "another", EDITOR)


def test_update_variant_bumps_only_variant_version(services, make_content):
    content = make_content()
    variant = services.variants.update_variant(content.id, content.default_variant_id, "New body", EDITOR)

    assert variant.version == 2
    loaded = services.content.get_content(content.id)
    assert loaded.default_variant.body == "New body"
    assert loaded.metadata.version == 1
    with pytest.raises(NotFoundError):
        services.variants.update_variant(content.id, "missing", "x", EDITOR)


def test_default_variant_removal_needs_replacement(services, make_content):
    content = make_content()
    visual = services.variants.add_variant(content.id, "visual", "Picture it", EDITOR)

    with pytest.raises(InvalidStateError):
        services.variants.remove_variant(content.id, content.default_variant_id, EDITOR)
    with pytest.raises(ValidationError):
        services.variants.remove_variant(
            content.id, content.default_variant_id, EDITOR, replacement_default_id=content.default_variant_id,
        )

    updated = services.variants.remove_variant(
        content.id, content.default_variant_id, EDITOR, replacement_default_id=visual.id,
    )
    assert updated.default_variant_id == visual.id
    assert [v.id for v in updated.variants] == [visual.id]
    loaded = services.content.get_content(content.id)
    assert loaded.default_variant_id == visual.id
    assert loaded.metadata.version == 2
    assert services.content.history(content.id)[-1].change_type == ChangeType.UPDATE


def test_non_default_variant_can_be_removed(services, make_content):
    content = make_content()
    visual = services.variants.add_variant(content.id, "visual", "Picture it", EDITOR)
    updated = services.variants.remove_variant(content.id, visual.id, EDITOR)
    assert updated.default_variant_id == content.default_variant_id
    assert len(services.content.get_content(content.id).variants) == 1


def test_set_default_variant(services, make_content):
    content = make_content()
    visual = services.variants.add_variant(content.id, "visual", "Picture it", EDITOR)
    updated = services.variants.set_default_variant(content.id, visual.id, EDITOR)
    assert updated.default_variant_id == visual.id
    assert updated.metadata.version == 2
    with pytest.raises(ValidationError):
        services.variants.set_default_variant(content.id, visual.id, EDITOR)


def test_variant_for_falls_back_to_multimodal_then_default(services, make_content):
    content = make_content()
    assert services.variants.variant_for(content.id, "visual").id == content.default_variant_id

    multi = services.variants.add_variant(content.id, "multimodal", "All senses", EDITOR)
    assert services.variants.variant_for(content.id, "visual").id == multi.id

    visual = services.variants.add_variant(content.id, "visual", "Picture it", EDITOR)
    assert services.variants.variant_for(content.id, "visual").id == visual.id
    assert services.variants.variant_for(content.id).id == multi.id
