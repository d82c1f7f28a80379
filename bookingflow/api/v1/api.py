"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from bookingflow.api.v1.endpoints import (
    events,
    bookings,
    checkout,
    notifications,
    health
)

api_router = APIRouter()

# Include all routers
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(checkout.router, prefix="/checkout", tags=["checkout"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
