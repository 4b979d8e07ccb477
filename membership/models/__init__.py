"""
Database Models
Import all models here for Alembic migrations
"""

from membership.models.college import College
from membership.models.admin import Admin
from membership.models.user import User
from membership.models.event import Event
from membership.models.activity_log import ActivityLog

__all__ = [
    "College",
    "Admin",
    "User",
    "Event",
    "ActivityLog",
]
