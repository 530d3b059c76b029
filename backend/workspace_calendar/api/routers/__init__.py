from fastapi import APIRouter

from workspace_calendar.api.routers.calendar import router as calendar_router


api_router = APIRouter()
api_router.include_router(calendar_router, prefix="/calendar", tags=["calendar"])
