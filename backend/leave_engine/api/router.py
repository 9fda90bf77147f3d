from fastapi import APIRouter

from leave_engine.api.employees import employees_router
from leave_engine.api.leaves import leaves_router

api_router = APIRouter()
api_router.include_router(employees_router)
api_router.include_router(leaves_router)
