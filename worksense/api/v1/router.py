from fastapi import APIRouter
from .ai import router as ai_router
from .projects import router as projects_router
from .backlog import router as backlog_router
from .sprints import router as sprints_router
from .sprint_items import router as sprint_items_router
from .gamification import router as gamification_router

api_router = APIRouter()

# Include all sub-routers
api_router.include_router(ai_router, tags=["ai"])
api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(backlog_router, prefix="/projects", tags=["backlog"])
api_router.include_router(sprints_router, prefix="/projects", tags=["sprints"])
api_router.include_router(sprint_items_router, prefix="/projects", tags=["sprint-items"])
api_router.include_router(gamification_router, tags=["gamification"])
