"""
Event Service
Event CRUD, listings and the views built around the registration engine
"""

import logging
from datetime import timedelta
from typing import List, Optional
from pydantic import ValidationError as PydanticValidationError
from membership.config import Settings
from membership.errors import ConflictError, Forbidden, ValidationError
from membership.schemas.common import to_document
from membership.schemas.event import (
    CreateEventRequest,
    Event,
    EventType,
    Organizer,
    RegistrationStatus,
    UpdateEventRequest,
)
from membership.schemas.user import User
from membership.services.registration_service import apply_capacity, available_spots, registration_status
from membership.store import EntityKind, EntityStore, Range, StaleEntityError
from membership.time_utils import utcnow

logger = logging.getLogger(__name__)


def _validation_message(exc: PydanticValidationError) -> str:
    return "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())


class EventService:
    """Service for event operations"""

    def __init__(self, store: EntityStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def create_event(
        self,
        data: CreateEventRequest,
        organizer,
        target_college_id: Optional[str] = None,
    ) -> Event:
        """
        Create an event organized by an admin

        Args:
            data: Event fields
            organizer: Admin creating the event
            target_college_id: Overrides the request's target college (college admins)

        Raises:
            NotFoundError: Target college missing
            ValidationError: Type and target college disagree
        """
        doc = to_document(data)
        if target_college_id is not None:
            doc["target_college_id"] = target_college_id
        if doc.get("target_college_id"):
            await self.store.get(EntityKind.COLLEGE, doc["target_college_id"])
        if "max_attendees" not in data.model_fields_set:
            doc["max_attendees"] = self.settings.DEFAULT_MAX_ATTENDEES
        if doc.get("registration_deadline") is None:
            doc["registration_deadline"] = utcnow() + timedelta(days=self.settings.DEFAULT_REGISTRATION_WINDOW_DAYS)

        doc["organizer"] = to_document(Organizer(
            admin_id=organizer.id,
            name=organizer.full_name or organizer.username,
            contact=organizer.email,
        ))
        doc["registrations"] = []
        doc["is_active"] = True
        self._validate(doc)

        event = Event.model_validate(await self.store.create(EntityKind.EVENT, doc))
        logger.info("Event created: %s (%s) by %s", event.title, event.id, organizer.username)
        return event

    def _validate(self, doc: dict) -> None:
        now = utcnow()
        candidate = {"id": doc.get("id", "new"), "created_at": now, "updated_at": now, **doc}
        try:
            Event.model_validate(candidate)
        except PydanticValidationError as exc:
            raise ValidationError(_validation_message(exc))

    async def get_event(self, event_id: str) -> Event:
        return Event.model_validate(await self.store.get(EntityKind.EVENT, event_id))

    async def get_scoped_event(self, event_id: str, college_id: Optional[str]) -> Event:
        """
        Fetch an event inside an admin's college scope

        Raises:
            Forbidden: Event belongs to another college
        """
        event = await self.get_event(event_id)
        if college_id is not None and event.target_college_id != college_id:
            raise Forbidden("Event not in your college")
        return event

    async def get_visible_event(self, event_id: str, user: User) -> Event:
        event = await self.get_event(event_id)
        if not self.is_visible(event, user):
            raise Forbidden("This event is only visible to students of the host college")
        return event

    @staticmethod
    def is_visible(event: Event, user: User) -> bool:
        return event.event_type == EventType.OPEN_TO_ALL or event.target_college_id == user.college_id

    async def list_events(
        self,
        college_id: Optional[str] = None,
        event_type: Optional[str] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
        upcoming_only: bool = False,
        search: Optional[str] = None,
        organizer_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
        visible_to: Optional[User] = None,
    ) -> tuple[List[Event], int]:
        """
        List events by date

        Args:
            college_id: Only events targeting this college (admin scope)
            event_type: Event type filter
            category: Category filter
            is_active: Active flag filter
            upcoming_only: Only events from now on
            search: Case-insensitive match on title, description or location
            organizer_id: Only events organized by this admin
            skip: Offset for pagination
            limit: Page size
            visible_to: Only events this user may see (open-to-all or own college)

        Returns:
            Tuple of (events, total count)
        """
        filters = {}
        if college_id:
            filters["target_college_id"] = college_id
        elif visible_to is not None:
            filters["target_college_id"] = [None, visible_to.college_id] if visible_to.college_id else None
        if event_type:
            filters["event_type"] = event_type
        if category:
            filters["category"] = category
        if is_active is not None:
            filters["is_active"] = is_active
        if upcoming_only:
            filters["date"] = Range(start=utcnow())

        descending = not upcoming_only
        if not search and not organizer_id:
            total = await self.store.count(EntityKind.EVENT, filters)
            docs = await self.store.find(
                EntityKind.EVENT, filters, order_by="date", descending=descending, limit=limit, offset=skip
            )
            return [Event.model_validate(doc) for doc in docs], total

        docs = await self.store.find(EntityKind.EVENT, filters, order_by="date", descending=descending)
        events = [Event.model_validate(doc) for doc in docs]
        if organizer_id:
            events = [event for event in events if event.organizer.admin_id == organizer_id]
        if search:
            needle = search.strip().lower()
            events = [
                event for event in events
                if needle in event.title.lower()
                or needle in event.description.lower()
                or needle in event.location.lower()
            ]
        return events[skip:skip + limit], len(events)

    async def upcoming_events(self, limit: int = 10, visible_to: Optional[User] = None) -> List[Event]:
        events, _ = await self.list_events(is_active=True, upcoming_only=True, limit=limit, visible_to=visible_to)
        return events

    async def update_event(
        self,
        event_id: str,
        data: UpdateEventRequest,
        college_id: Optional[str] = None,
    ) -> Event:
        """
        Update an event, optionally restricted to an admin's college

        A capacity change is checked against the confirmed registrations and
        promotes waitlisted ones into new seats. The write is versioned and
        retried when a registration lands in between.

        Raises:
            Forbidden: Event outside the scope, or a scoped admin retargeting it
            ValidationError: Resulting event would be inconsistent, or capacity below the confirmed count
            ConflictError: Too much contention on the event
        """
        requested = to_document(data, exclude_unset=True)
        if college_id is not None and (
            requested.get("event_type") == EventType.OPEN_TO_ALL.value
            or requested.get("target_college_id", college_id) != college_id
        ):
            raise Forbidden("College admins can only manage events for their own college")

        if requested.get("event_type") == EventType.OPEN_TO_ALL.value:
            requested.setdefault("target_college_id", None)
        if requested.get("target_college_id"):
            await self.store.get(EntityKind.COLLEGE, requested["target_college_id"])

        for attempt in range(self.settings.REGISTRATION_RETRY_LIMIT):
            event = await self.get_scoped_event(event_id, college_id)
            patch = dict(requested)
            self._validate({**to_document(event), **patch})

            promoted = []
            if "max_attendees" in patch:
                registrations, promoted = apply_capacity(
                    event, patch["max_attendees"], promote=self.settings.WAITLIST_PROMOTION
                )
                if promoted:
                    patch["registrations"] = [to_document(r) for r in registrations]

            try:
                doc = await self.store.update(EntityKind.EVENT, event_id, patch, expected_version=event.version)
            except StaleEntityError:
                logger.info("Event %s changed during update, retrying (attempt %d)", event_id, attempt + 1)
                continue

            logger.info("Event updated: %s", event_id)
            for registration in promoted:
                logger.info("User %s promoted from waitlist for event %s", registration.user_id, event_id)
            return Event.model_validate(doc)

        raise ConflictError("Event is busy, please retry")

    async def delete_event(self, event_id: str, college_id: Optional[str] = None) -> Event:
        """Soft delete: the event stays with its registrations but goes inactive"""
        await self.get_scoped_event(event_id, college_id)
        event = Event.model_validate(await self.store.update(EntityKind.EVENT, event_id, {"is_active": False}))
        logger.info("Event deactivated: %s", event_id)
        return event

    async def user_registrations(self, user_id: str) -> List[tuple[Event, object]]:
        """(event, registration) pairs for a user, newest registration first"""
        pairs = []
        for doc in await self.store.find(EntityKind.EVENT, order_by="date", descending=True):
            event = Event.model_validate(doc)
            for registration in event.registrations:
                if registration.user_id == user_id:
                    pairs.append((event, registration))
        pairs.sort(key=lambda pair: pair[1].registered_at, reverse=True)
        return pairs

    # Views

    @staticmethod
    def to_response(event: Event, now=None) -> dict:
        now = now or utcnow()
        data = event.model_dump(exclude={"registrations", "updated_at", "version"})
        data.update({
            "confirmed_count": event.count(RegistrationStatus.CONFIRMED),
            "waitlisted_count": event.count(RegistrationStatus.WAITLISTED),
            "available_spots": available_spots(event),
            "registration_status": registration_status(event, now),
        })
        return data

    async def to_detail(self, event: Event) -> dict:
        """Event view with registrations joined to user details"""
        data = self.to_response(event)
        user_ids = list({registration.user_id for registration in event.registrations})
        users = {}
        if user_ids:
            users = {doc["id"]: doc for doc in await self.store.find(EntityKind.USER, {"id": user_ids})}

        data["registrations"] = []
        for registration in event.registrations:
            user = users.get(registration.user_id, {})
            data["registrations"].append({
                **registration.model_dump(),
                "full_name": user.get("full_name"),
                "email": user.get("email"),
                "member_id": user.get("member_id"),
                "college": user.get("college"),
            })
        return data
