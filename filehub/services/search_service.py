"""Search service — faceted search, relevance ranking and search history."""

import json
import logging
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models import SearchHistory
from ..schemas.search import SearchFilters, SearchHistoryEntry, SearchResponse, SearchResult
from .file_query import (
    SEARCH_DOCUMENT_TYPES,
    TEXT_FIELDS_SEARCH,
    FileQuery,
    SearchQueryParams,
    SearchSort,
    build_file_filters,
    search_order,
)
from .search_ranker import RelevanceScorer, SubstringScorer, rank_page

logger = logging.getLogger(__name__)


class SearchService:
    """Runs a search for one user and records it in their history."""

    def __init__(self, db: Session, scorer: Optional[RelevanceScorer] = None):
        self.db = db
        self.scorer = scorer or SubstringScorer()

    def search(self, owner_id: str, params: SearchQueryParams) -> SearchResponse:
        criteria = build_file_filters(
            owner_id,
            params,
            folder_scope="any",
            text_fields=TEXT_FIELDS_SEARCH,
            document_types=SEARCH_DOCUMENT_TYPES,
            split_terms=True,
        )
        query = FileQuery(
            self.db,
            criteria,
            search_order(params.sort_by, params.sort_order),
            params.page,
            params.limit,
        )
        total, files = query.execute()

        text = params.search or ""
        ranked = rank_page(
            files,
            text,
            by_relevance=params.sort_by == SearchSort.RELEVANCE,
            scorer=self.scorer,
        )
        results = [
            SearchResult(
                **SearchResult.fields_from(r.file),
                relevance_score=r.relevance_score,
                highlighted_name=r.highlighted_name,
                highlighted_description=r.highlighted_description,
            )
            for r in ranked
        ]

        if text and settings.search_history_enabled:
            self.record_history(owner_id, text, params.describe(), total)

        return SearchResponse(
            query=text,
            results=results,
            pagination=query.pagination(total),
            filters=SearchFilters(
                type=params.type.value,
                folder_id=params.folder_id,
                tags=params.tags,
                min_size=params.min_size,
                max_size=params.max_size,
                start_date=params.start_date,
                end_date=params.end_date,
            ),
        )

    def record_history(self, owner_id: str, query: str, filters: dict, results_count: int) -> None:
        """Write one history row. Never raises; failures are logged and dropped."""
        try:
            self.db.add(
                SearchHistory(
                    query=query[:500],
                    filters=json.dumps(filters),
                    user_id=owner_id,
                    results_count=results_count,
                )
            )
            self.db.commit()
        except sqlalchemy.exc.SQLAlchemyError as e:
            logger.warning("Failed to save search history: %s", e)
            self.db.rollback()

    def recent_history(self, owner_id: str, limit: int = 20) -> List[SearchHistoryEntry]:
        rows = (
            self.db.query(SearchHistory)
            .filter(SearchHistory.user_id == owner_id)
            .order_by(SearchHistory.created_at.desc(), SearchHistory.id.desc())
            .limit(limit)
            .all()
        )
        return [
            SearchHistoryEntry(
                id=row.id,
                query=row.query,
                filters=json.loads(row.filters) if row.filters else None,
                results_count=row.results_count,
                created_at=row.created_at,
            )
            for row in rows
        ]
