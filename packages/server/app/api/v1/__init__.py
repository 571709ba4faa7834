"""
API v1 Router
"""

from fastapi import APIRouter
from . import admin, my_projects, projects, social

router = APIRouter()

# Public directory (explore, detail, submit, categories)
router.include_router(projects.router, tags=["Projects"])

# Votes and comments on a project
router.include_router(social.router, prefix="/projects", tags=["Social"])

# Signed-in user's own projects
router.include_router(my_projects.router, prefix="/me/projects", tags=["My Projects"])

# Approval workflow and moderation
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/projects",
            "/projects/{slug}",
            "/projects/{projectId}/vote",
            "/projects/{projectId}/comments",
            "/categories",
            "/me/projects",
            "/admin/projects",
            "/admin/categories",
        ],
    }
