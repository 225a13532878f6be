"""Main API router that includes versioned routers."""

from fastapi import APIRouter

from api.v1 import auth, document_requests, files, health, me, project_members, projects, uploads

# Main API router
api_router = APIRouter()

# Include v1 routers
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(health.router, tags=["health"])
v1_router.include_router(auth.router, tags=["auth"])
v1_router.include_router(me.router, tags=["users"])
v1_router.include_router(projects.router, tags=["projects"])
v1_router.include_router(project_members.router, tags=["project-members"])
v1_router.include_router(document_requests.router, tags=["document-requests"])
v1_router.include_router(uploads.router, tags=["uploads"])
v1_router.include_router(files.router, tags=["files"])

api_router.include_router(v1_router)
