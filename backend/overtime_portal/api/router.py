from fastapi import APIRouter

from overtime_portal.api.orders import orders_router
from overtime_portal.api.reports import reports_router

api_router = APIRouter()
api_router.include_router(orders_router)
api_router.include_router(reports_router)
