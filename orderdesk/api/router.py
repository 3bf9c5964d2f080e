# orderdesk/api/router.py
from fastapi import APIRouter
from orderdesk.api import (
    routes_auth,
    routes_users,
    routes_roles,
    routes_leads,
    routes_orders,
    routes_notifications,
    routes_audit_logs,
    routes_locations,
)

api_router = APIRouter()

api_router.include_router(routes_auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(routes_users.router, prefix="/users", tags=["users"])
api_router.include_router(routes_roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(routes_leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(routes_orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(routes_notifications.router,
                          prefix="/notifications",
                          tags=["notifications"])
api_router.include_router(routes_audit_logs.router,
                          prefix="/audit-logs",
                          tags=["audit"])
api_router.include_router(routes_locations.router, tags=["locations"])
