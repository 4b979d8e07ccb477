"""
Business Services
Built once per application around the injected entity store
"""

from fastapi import Request
from membership.config import Settings
from membership.services.activity_log_service import ActivityLogService
from membership.services.admin_service import AdminService
from membership.services.analytics_service import AnalyticsService
from membership.services.college_service import CollegeService
from membership.services.email_service import EmailService
from membership.services.event_service import EventService
from membership.services.registration_service import RegistrationService
from membership.services.tenure_service import TenureManager
from membership.services.user_service import UserService
from membership.store import EntityStore


class Services:
    """Every service wired to one store"""

    def __init__(self, store: EntityStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.activity_logs = ActivityLogService(store)
        self.email = EmailService(settings)
        self.tenure = TenureManager(store, self.activity_logs)
        self.colleges = CollegeService(store, self.tenure, self.activity_logs)
        self.users = UserService(store, settings, self.colleges, self.tenure)
        self.admins = AdminService(store, self.tenure, self.activity_logs, self.email)
        self.events = EventService(store, settings)
        self.registrations = RegistrationService(store, settings)
        self.analytics = AnalyticsService(store)


# Dependency to get the services of the running application
def get_services(request: Request) -> Services:
    return request.app.state.services


__all__ = [
    "Services",
    "get_services",
    "ActivityLogService",
    "AdminService",
    "AnalyticsService",
    "CollegeService",
    "EmailService",
    "EventService",
    "RegistrationService",
    "TenureManager",
    "UserService",
]
