"""Authentication API endpoints.

    POST /api/auth/register  — create an account (first account becomes super admin)
    POST /api/auth/login     — authenticate and receive a bearer token
    GET  /api/auth/me        — current user info
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..core.token_factory import create_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


class RegisterRequest(BaseModel):
    email: str = Field(..., description="Email address")
    password: str = Field(..., min_length=8, description="Password (min 8 characters)")
    name: Optional[str] = Field(None, max_length=255, description="Display name")

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "alice@example.com", "password": "securepass", "name": "Alice"}]
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=201,
    summary="Register a new user",
)
def register_user(body: RegisterRequest, db: Session = Depends(get_db)):
    user = auth_service.register_user(db, body.email, body.password, body.name)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate and receive a bearer token",
)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.email, body.password)
    token = create_token(
        subject=user.id,
        role=user.role,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user info",
)
def get_me(auth: AuthContext = Depends(require_auth), db: Session = Depends(get_db)):
    user = auth_service.get_user_by_id(db, auth.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return MeResponse(user=UserResponse.model_validate(user))
