from fastapi import APIRouter

from hrms.api.leave_types import leave_types_router
from hrms.api.leaves import leaves_router
from hrms.api.time_tracking import time_tracking_router

api_router = APIRouter(prefix="/api")
api_router.include_router(leave_types_router)
api_router.include_router(leaves_router)
api_router.include_router(time_tracking_router)
