"""Multi-criteria search over content metadata."""
import pytest

from conftest import ADMIN, APPROVER, EDITOR
from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.content.models import ContentStatus, KeyStage, Subject
from curriculum_content.domain.permission.models import PermissionLevel


@pytest.fixture
def catalogue(make_content, grant, services):
    grant(EDITOR, PermissionLevel.EDIT, key_stage="KS3")
    items = [
        make_content(title="Adding fractions"),
        make_content(title="Comparing fractions", difficulty="foundation"),
        make_content(title="Persuasive writing", subject="English", topics=["writing"]),
        make_content(title="Poetry", subject="English", topics=["poems"], content_type="exercise"),
        make_content(title="Place value", topics=["number"], region="wales"),
        make_content(title="Algebra basics", key_stage="KS3"),
        make_content(title="Cells", key_stage="KS3", subject="Science"),
    ]
    return items


def test_key_stage_and_subject_scenario(services, catalogue):
    page = services.search.search(
        {"key_stage": ["KS2"], "subject": ["Mathematics", "English"]}, page=1, page_size=2,
    )
    assert page.total_results == 5
    assert len(page.results) == 2
    assert page.page == 1
    assert page.page_size == 2


def test_pages_cover_every_match_once(services, catalogue):
    filters = {"key_stage": ["KS2"]}
    seen = []
    for number in (1, 2, 3):
        seen.extend(m.id for m in services.search.search(filters, page=number, page_size=2).results)
    assert len(seen) == 5
    assert len(set(seen)) == 5
    assert services.search.search(filters, page=4, page_size=2).results == []


def test_empty_filter_matches_everything(services, catalogue):
    assert services.search.search({}).total_results == 7
    assert services.search.search(None).total_results == 7


def test_fields_are_conjunctive(services, catalogue):
    page = services.search.search({"key_stage": ["KS3"], "subject": ["Mathematics"]})
    assert [m.title for m in page.results] == ["Algebra basics"]


def test_text_query_matches_title_and_topics(services, catalogue):
    titles = {m.title for m in services.search.search({"query": "VALUE"}).results}
    assert titles == {"Place value"}
    titles = {m.title for m in services.search.search({"query": "poems"}).results}
    assert titles == {"Poetry"}
    titles = {m.title for m in services.search.search({"query": "writing"}).results}
    assert titles == {"Persuasive writing"}


def test_attribute_filters(services, catalogue):
    assert [m.title for m in services.search.search({"difficulty": ["foundation"]}).results] == [
        "Comparing fractions",
    ]
    assert [m.title for m in services.search.search({"content_type": ["exercise"]}).results] == ["Poetry"]
    assert [m.title for m in services.search.search({"region": ["wales"]}).results] == ["Place value"]
    assert services.search.search({"created_by": EDITOR}).total_results == 7
    assert services.search.search({"created_by": ADMIN}).total_results == 0


def test_status_filter_follows_workflow(services, catalogue):
    services.workflow.transition(catalogue[0].id, "review", EDITOR)
    services.workflow.transition(catalogue[0].id, "approved", APPROVER)

    page = services.search.search({"status": ["approved"]})
    assert [m.id for m in page.results] == [catalogue[0].id]
    assert page.results[0].status == ContentStatus.APPROVED
    assert services.search.search({"status": ["draft"]}).total_results == 6


def test_updated_range(services, catalogue):
    assert services.search.search({"updated_from": "2999-01-01T00:00:00+00:00"}).total_results == 0
    assert services.search.search({"updated_to": "2999-01-01T00:00:00+00:00"}).total_results == 7
    with pytest.raises(ValidationError):
        services.search.search({"updated_from": "2999-01-02", "updated_to": "2999-01-01"})
    with pytest.raises(ValidationError):
        services.search.search({"updated_from": "yesterday"})


def test_sorting(services, catalogue):
    ks2 = {"key_stage": ["KS2"]}
    ascending = services.search.search(ks2, sort_by="title", descending=False)
    assert [m.title for m in ascending.results] == [
        "Adding fractions", "Comparing fractions", "Persuasive writing", "Place value", "Poetry",
    ]
    descending = services.search.search(ks2, sort_by="title")
    assert [m.title for m in descending.results] == list(reversed([m.title for m in ascending.results]))
    with pytest.raises(ValidationError):
        services.search.search(ks2, sort_by="estimated_duration")


def test_recently_updated_first_by_default(services, catalogue):
    services.content.update_content(catalogue[2].id, EDITOR, {"description": "touched"})
    assert services.search.search().results[0].id == catalogue[2].id


def test_facets_count_all_matches(services, catalogue):
    page = services.search.search({"key_stage": ["KS2"]}, page_size=1)
    assert page.facets["subject"] == {Subject.MATHEMATICS.value: 3, Subject.ENGLISH.value: 2}
    assert page.facets["key_stage"] == {KeyStage.KS2.value: 5}
    assert page.facets["status"] == {"draft": 5}


@pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (-1, 5), (1, 101), ("1", 10)])
def test_bad_paging_is_rejected(services, page, page_size):
    with pytest.raises(ValidationError):
        services.search.search({}, page=page, page_size=page_size)


@pytest.mark.parametrize("filters", [
    {"key_stage": ["KS9"]},
    {"subject": ["Alchemy"]},
    {"colour": ["blue"]},
])
def test_bad_filters_are_rejected(services, filters):
    with pytest.raises(ValidationError):
        services.search.search(filters)


def test_updated_range_accepts_zulu_suffix(services, catalogue):
    assert services.search.search({"updated_from": "2999-01-01T00:00:00Z"}).total_results == 0
    assert services.search.search({"updated_to": "2999-01-01T00:00:00Z"}).total_results == 7
    assert services.search.search({"updated_from": "2000-01-01T00:00:00z"}).total_results == 7
