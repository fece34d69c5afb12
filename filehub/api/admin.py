"""Admin API: system statistics and user management.

    GET    /api/admin/stats         — aggregate statistics (admin)
    GET    /api/admin/users         — paginated user list (admin)
    POST   /api/admin/users         — create an admin account (super admin)
    PATCH  /api/admin/users/{id}    — change a role (super admin)
    DELETE /api/admin/users/{id}    — delete an account and its content (super admin)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin, require_super_admin
from ..database import get_db
from ..schemas.admin import (
    AdminStatsResponse,
    AdminUserEnvelope,
    AdminUserListResponse,
    CreateAdminRequest,
    UpdateRoleRequest,
)
from ..schemas.common import SuccessResponse
from ..services.admin_service import AdminService, StatsPeriod
from ..services.blob_store import BlobStore, get_blob_store

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(
    period: StatsPeriod = Query(StatsPeriod.LAST_MONTH),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return AdminService(db).get_stats(period)


@router.get("/users", response_model=AdminUserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None, description="super_admin | admin | user | all"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_admin),
):
    return AdminService(db).list_users(page, limit, search=search, role=role)


@router.post("/users", response_model=AdminUserEnvelope, status_code=201)
def create_user(
    body: CreateAdminRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_super_admin),
):
    user = AdminService(db).create_user(body.name, body.email, body.password, body.role)
    return AdminUserEnvelope(user=user)


@router.patch("/users/{user_id}", response_model=AdminUserEnvelope)
def update_user_role(
    user_id: str,
    body: UpdateRoleRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_super_admin),
):
    return AdminUserEnvelope(user=AdminService(db).update_role(auth.user_id, user_id, body.role))


@router.delete("/users/{user_id}", response_model=SuccessResponse)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_super_admin),
    blob_store: BlobStore = Depends(get_blob_store),
):
    AdminService(db).delete_user(auth.user_id, user_id, blob_store)
    return SuccessResponse()
