"""
API router: every engine endpoint mounted under /api/v1 by app.main
"""
from fastapi import APIRouter

from app.api.v1 import assignments, attendance, auth, health, projects, tasks

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Site setup (supervisor/admin)
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])

# Worker flows
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(tasks.router, prefix="/worker", tags=["worker-tasks"])
