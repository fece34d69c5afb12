"""Search API: ranked faceted search and the caller's search history."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.search import SearchHistoryResponse, SearchResponse
from ..services.file_query import SearchQueryParams
from ..services.search_service import SearchService
from .params import search_params

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("", response_model=SearchResponse)
def search_files(
    params: SearchQueryParams = Depends(search_params),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Search across all of the caller's folders.

    Results are highlighted with ``<mark>``; with ``sortBy=relevance`` the
    page is re-ordered by score (name 10, description 5, tag 3).
    """
    return SearchService(db).search(auth.user_id, params)


@router.get("/history", response_model=SearchHistoryResponse)
def search_history(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return SearchHistoryResponse(history=SearchService(db).recent_history(auth.user_id, limit))
