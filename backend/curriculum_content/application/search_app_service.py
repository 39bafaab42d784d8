"""Application service — multi-criteria filtering over content metadata."""
from __future__ import annotations
from typing import Optional, Union

from curriculum_content.core import config
from curriculum_content.domain.search.filters import (
    SearchFilters,
    SearchPage,
    build_filters,
    run_search,
    validate_paging,
)
from curriculum_content.persistence.interfaces.content_repository import ContentRepository


class SearchAppService:
    """A read-only projection over the store; nothing here takes a lock."""

    def __init__(self, repo: ContentRepository, max_page_size: Optional[int] = None):
        self._repo = repo
        self._max_page_size = max_page_size or config.MAX_PAGE_SIZE

    def search(
        self,
        filters: Union[SearchFilters, dict, None] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        sort_by: str = "updated_at",
        descending: bool = True,
    ) -> SearchPage:
        if page_size is None:
            page_size = config.DEFAULT_PAGE_SIZE
        validate_paging(page, page_size, self._max_page_size).unwrap()
        if not isinstance(filters, SearchFilters):
            filters = build_filters(filters).unwrap()
        return run_search(self._repo.list_metadata(), filters, page, page_size, sort_by, descending)
