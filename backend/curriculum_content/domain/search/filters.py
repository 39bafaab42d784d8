"""Attribute filtering, ordering and pagination over content metadata."""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from curriculum_content.domain.common.enums import parse_enum_list
from curriculum_content.domain.common.errors import ValidationError
from curriculum_content.domain.common.result import Result
from curriculum_content.domain.content.models import (
    ContentMetadata,
    ContentStatus,
    ContentType,
    Difficulty,
    KeyStage,
    Region,
    Subject,
)

SORT_FIELDS = {"updated_at", "created_at", "title"}


@dataclass
class SearchFilters:
    """A conjunction of fields; each list field is a disjunction over its values."""

    key_stages: List[KeyStage] = field(default_factory=list)
    subjects: List[Subject] = field(default_factory=list)
    content_types: List[ContentType] = field(default_factory=list)
    difficulties: List[Difficulty] = field(default_factory=list)
    statuses: List[ContentStatus] = field(default_factory=list)
    regions: List[Region] = field(default_factory=list)
    query: Optional[str] = None
    created_by: Optional[str] = None
    updated_from: Optional[datetime] = None
    updated_to: Optional[datetime] = None


@dataclass
class SearchPage:
    total_results: int
    page: int
    page_size: int
    results: List[ContentMetadata]
    facets: Dict[str, Dict[str, int]] = field(default_factory=dict)


def _parse_timestamp(value, field_name: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            text = str(value).strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"'{field_name}' must be an ISO-8601 timestamp.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_filters(raw: Optional[dict]) -> Result[SearchFilters]:
    """Parse a loose dict (API query or caller input) into SearchFilters."""
    raw = dict(raw or {})
    try:
        filters = SearchFilters(
            key_stages=parse_enum_list(KeyStage, raw.pop("key_stage", None), "key stage"),
            subjects=parse_enum_list(Subject, raw.pop("subject", None), "subject"),
            content_types=parse_enum_list(ContentType, raw.pop("content_type", None), "content type"),
            difficulties=parse_enum_list(Difficulty, raw.pop("difficulty", None), "difficulty"),
            statuses=parse_enum_list(ContentStatus, raw.pop("status", None), "status"),
            regions=parse_enum_list(Region, raw.pop("region", None), "region"),
            query=(raw.pop("query", None) or "").strip() or None,
            created_by=raw.pop("created_by", None) or None,
            updated_from=_parse_timestamp(raw.pop("updated_from", None), "updated_from"),
            updated_to=_parse_timestamp(raw.pop("updated_to", None), "updated_to"),
        )
    except ValidationError as e:
        return Result.fail(e)

    if raw:
        return Result.fail(ValidationError(f"Unknown search filters: {sorted(raw)}."))
    if filters.updated_from and filters.updated_to and filters.updated_from > filters.updated_to:
        return Result.fail(ValidationError("'updated_from' must not be after 'updated_to'."))
    return Result.ok(filters)


def _text_matches(metadata: ContentMetadata, query: str) -> bool:
    needle = query.lower()
    haystack = [metadata.title, metadata.description, *metadata.topics, *metadata.learning_objectives]
    return any(needle in (text or "").lower() for text in haystack)


def matches(metadata: ContentMetadata, filters: SearchFilters) -> bool:
    if filters.key_stages and metadata.key_stage not in filters.key_stages:
        return False
    if filters.subjects and metadata.subject not in filters.subjects:
        return False
    if filters.content_types and metadata.content_type not in filters.content_types:
        return False
    if filters.difficulties and metadata.difficulty not in filters.difficulties:
        return False
    if filters.statuses and metadata.status not in filters.statuses:
        return False
    if filters.regions and metadata.region not in filters.regions:
        return False
    if filters.created_by and metadata.created_by != filters.created_by:
        return False
    if filters.query and not _text_matches(metadata, filters.query):
        return False
    if filters.updated_from or filters.updated_to:
        updated = _parse_timestamp(metadata.updated_at, "updated_at")
        if filters.updated_from and updated < filters.updated_from:
            return False
        if filters.updated_to and updated > filters.updated_to:
            return False
    return True


def validate_paging(page, page_size, max_page_size: int) -> Result[tuple]:
    for name, value in (("page", page), ("page_size", page_size)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            return Result.fail(ValidationError(f"'{name}' must be an integer >= 1."))
    if page_size > max_page_size:
        return Result.fail(ValidationError(f"'page_size' must not exceed {max_page_size}."))
    return Result.ok((page, page_size))


def facet_counts(items: Iterable[ContentMetadata]) -> Dict[str, Dict[str, int]]:
    items = list(items)
    return {
        "status": dict(Counter(m.status.value for m in items)),
        "key_stage": dict(Counter(m.key_stage.value for m in items)),
        "subject": dict(Counter(m.subject.value for m in items)),
    }


def run_search(
    items: Iterable[ContentMetadata],
    filters: SearchFilters,
    page: int,
    page_size: int,
    sort_by: str = "updated_at",
    descending: bool = True,
) -> SearchPage:
    """Filter, order and slice. Ties on the sort key fall back to the id."""
    if sort_by not in SORT_FIELDS:
        raise ValidationError(f"Cannot sort by '{sort_by}'. Must be one of {sorted(SORT_FIELDS)}.")

    matched = [m for m in items if matches(m, filters)]
    if sort_by == "title":
        key = lambda m: (m.title.lower(), m.id)  # noqa: E731
    else:
        key = lambda m: (_parse_timestamp(getattr(m, sort_by), sort_by), m.id)  # noqa: E731
    matched.sort(key=key, reverse=descending)

    start = (page - 1) * page_size
    return SearchPage(
        total_results=len(matched),
        page=page,
        page_size=page_size,
        results=matched[start:start + page_size],
        facets=facet_counts(matched),
    )
