"""Per-user analytics endpoint.

    GET /api/analytics?timeframe=7d|30d|90d|1y&type=overview|files
"""

from typing import Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.analytics import AnalyticsOverviewResponse, FileAnalyticsResponse
from ..services.analytics_service import AnalyticsService, AnalyticsTimeframe, AnalyticsType

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("", response_model=Union[AnalyticsOverviewResponse, FileAnalyticsResponse])
def get_analytics(
    timeframe: AnalyticsTimeframe = Query(AnalyticsTimeframe.WEEK),
    type: AnalyticsType = Query(AnalyticsType.OVERVIEW),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    service = AnalyticsService(db)
    if type == AnalyticsType.FILES:
        return service.files(auth.user_id, timeframe)
    return service.overview(auth.user_id, timeframe)
