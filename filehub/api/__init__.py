"""API routes."""

from .auth_routes import router as auth_router
from .files import router as files_router
from .search import router as search_router
from .folders import router as folders_router
from .tags import router as tags_router
from .upload import router as upload_router
from .admin import router as admin_router
from .activities import router as activities_router
from .analytics import router as analytics_router

__all__ = [
    "auth_router",
    "files_router",
    "search_router",
    "folders_router",
    "tags_router",
    "upload_router",
    "admin_router",
    "activities_router",
    "analytics_router",
]
