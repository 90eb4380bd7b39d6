"""Main API router that aggregates all route modules."""

from fastapi import APIRouter

from vipclub.api import access, access_links, gallery, health, members, upload

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])

# Token minting and redemption live at the API root
api_router.include_router(access.router, tags=["access"])

# Gated content
api_router.include_router(gallery.router, prefix="/gallery", tags=["gallery"])

# Admin endpoints
api_router.include_router(access_links.router, prefix="/admin/access-links", tags=["admin"])
api_router.include_router(members.router, prefix="/admin/members", tags=["admin"])
api_router.include_router(members.dashboard_router, prefix="/admin/dashboard", tags=["admin"])
api_router.include_router(upload.router, prefix="/upload", tags=["admin"])
