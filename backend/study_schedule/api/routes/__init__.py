from fastapi import APIRouter

from study_schedule.api.routes import schedules


api_router = APIRouter()
api_router.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
