"""Activity feed endpoint."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.admin import ActivityListResponse
from ..services.activity_service import recent_activities

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("", response_model=ActivityListResponse)
def list_activities(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return ActivityListResponse(activities=recent_activities(db, auth.user_id, limit))
