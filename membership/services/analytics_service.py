"""
Analytics Service
Dashboards for super admins and college admins
"""

from collections import Counter
from datetime import timedelta
from membership.schemas.analytics import AnalyticsPeriod
from membership.schemas.college import College
from membership.schemas.event import Event, RegistrationStatus
from membership.schemas.user import User
from membership.services.event_service import EventService
from membership.store import EntityKind, EntityStore, Range
from membership.time_utils import utcnow


class AnalyticsService:
    """Aggregate counts over users, admins, colleges and events"""

    def __init__(self, store: EntityStore):
        self.store = store

    async def super_admin_dashboard(self) -> dict:
        store = self.store
        total_admins = await store.count(EntityKind.ADMIN, {"role": "admin"})
        unassigned_admins = await store.count(EntityKind.ADMIN, {"role": "admin", "assigned_college_id": None})

        total_registrations = 0
        for doc in await store.find(EntityKind.EVENT):
            total_registrations += sum(
                1 for registration in doc["registrations"] or []
                if registration["status"] != RegistrationStatus.CANCELLED.value
            )

        return {
            "total_colleges": await store.count(EntityKind.COLLEGE),
            "active_colleges": await store.count(EntityKind.COLLEGE, {"is_active": True}),
            "total_admins": total_admins,
            "assigned_admins": total_admins - unassigned_admins,
            "unassigned_admins": unassigned_admins,
            "total_users": await store.count(EntityKind.USER),
            "active_users": await store.count(EntityKind.USER, {"is_active": True}),
            "total_events": await store.count(EntityKind.EVENT),
            "active_events": await store.count(EntityKind.EVENT, {"is_active": True}),
            "upcoming_events": await store.count(
                EntityKind.EVENT, {"is_active": True, "date": Range(start=utcnow())}
            ),
            "total_registrations": total_registrations,
        }

    async def college_dashboard(self, college_id: str) -> dict:
        college = College.model_validate(await self.store.get(EntityKind.COLLEGE, college_id))
        users = [
            User.model_validate(doc)
            for doc in await self.store.find(
                EntityKind.USER, {"college_id": college_id}, order_by="created_at", descending=True
            )
        ]
        events = [
            Event.model_validate(doc)
            for doc in await self.store.find(EntityKind.EVENT, {"target_college_id": college_id})
        ]

        now = utcnow()
        upcoming = sorted(
            (event for event in events if event.is_active and event.date >= now),
            key=lambda event: event.date,
        )
        return {
            "college_id": college.id,
            "college_name": college.name,
            "total_users": len(users),
            "active_users": sum(1 for user in users if user.is_active),
            "users_by_role": dict(Counter(user.role.value for user in users)),
            "total_events": len(events),
            "active_events": sum(1 for event in events if event.is_active),
            "events_by_type": dict(Counter(event.event_type.value for event in events)),
            "upcoming_events": [EventService.to_response(event, now) for event in upcoming[:5]],
            "recent_users": users[:5],
        }

    async def college_analytics(self, college_id: str, period: AnalyticsPeriod = AnalyticsPeriod.MONTH) -> dict:
        """New users and events for a college in the last 7, 30 or 90 days"""
        await self.store.get(EntityKind.COLLEGE, college_id)
        since = utcnow() - timedelta(days=period.days)

        users = [
            User.model_validate(doc)
            for doc in await self.store.find(EntityKind.USER, {"college_id": college_id})
        ]
        events = [
            Event.model_validate(doc)
            for doc in await self.store.find(EntityKind.EVENT, {"target_college_id": college_id})
        ]
        period_users = [user for user in users if user.created_at >= since]
        period_events = [event for event in events if event.created_at >= since]

        registration_data = []
        for event in period_events:
            confirmed = event.count(RegistrationStatus.CONFIRMED)
            registration_data.append({
                "event_id": event.id,
                "event_title": event.title,
                "total_registrations": sum(
                    1 for registration in event.registrations
                    if registration.status != RegistrationStatus.CANCELLED
                ),
                "confirmed_registrations": confirmed,
                "waitlisted": event.count(RegistrationStatus.WAITLISTED),
                "fill_rate": round(confirmed / event.max_attendees, 4),
            })

        fill_rates = [item["fill_rate"] for item in registration_data]
        return {
            "college_id": college_id,
            "period": period,
            "user_growth": {
                "total": len(users),
                "new_in_period": len(period_users),
                "by_role": dict(Counter(user.role.value for user in period_users)),
                "by_batch": dict(Counter(user.batch_year for user in period_users)),
            },
            "event_metrics": {
                "total": len(events),
                "new_in_period": len(period_events),
                "by_category": dict(Counter(event.category.value for event in period_events)),
                "registration_data": registration_data,
                "average_fill_rate": round(sum(fill_rates) / len(fill_rates), 4) if fill_rates else None,
            },
        }
