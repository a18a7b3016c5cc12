from fastapi import APIRouter

from teamdeck.api.v1.endpoints import activity, projects, stats, tasks, teams, users

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(activity.router, prefix="/activity", tags=["activity"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
