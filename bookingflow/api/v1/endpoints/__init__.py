"""
API endpoints module
"""

from . import events, bookings, checkout, health, notifications

__all__ = [
    "events",
    "bookings",
    "checkout",
    "health",
    "notifications"
]
