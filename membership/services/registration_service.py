"""
Event Registration Engine
Deadline, duplicate and capacity rules for an event's registration list.

The functions at the top are pure: they take an event snapshot and return a
decision or a new registration list. RegistrationService applies them to the
store with an optimistic read-modify-write on the event's version.
"""

import logging
from datetime import datetime
from typing import Optional
from membership.config import Settings
from membership.errors import ConflictError, Forbidden, InvalidStateError, RegistrationError, ValidationError
from membership.schemas.common import to_document
from membership.schemas.event import (
    Event,
    EventType,
    Registration,
    RegistrationDecision,
    RegistrationStatus,
    WindowStatus,
)
from membership.schemas.user import User
from membership.store import EntityKind, EntityStore, StaleEntityError
from membership.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

DEADLINE_PASSED = "deadline passed"
ALREADY_REGISTERED = "already registered"


def can_register(event: Event, user_id: str, now: datetime) -> RegistrationDecision:
    """First matching rule wins: deadline, duplicate, capacity"""
    if ensure_utc(now) > event.registration_deadline:
        return RegistrationDecision(allowed=False, reason=DEADLINE_PASSED)

    if event.active_registration(user_id):
        return RegistrationDecision(allowed=False, reason=ALREADY_REGISTERED)

    if event.count(RegistrationStatus.CONFIRMED) >= event.max_attendees:
        return RegistrationDecision(allowed=True, resulting_status=RegistrationStatus.WAITLISTED)

    return RegistrationDecision(allowed=True, resulting_status=RegistrationStatus.CONFIRMED)


def available_spots(event: Event) -> int:
    return max(0, event.max_attendees - event.count(RegistrationStatus.CONFIRMED))


def registration_status(event: Event, now: datetime) -> WindowStatus:
    if ensure_utc(now) > event.registration_deadline:
        return WindowStatus.CLOSED
    if available_spots(event) <= 0:
        return WindowStatus.FULL
    return WindowStatus.OPEN


def apply_registration(event: Event, user_id: str, now: datetime) -> tuple[list[Registration], Registration]:
    """
    Registration list with the user's new registration appended

    Raises:
        RegistrationError: When can_register refuses
    """
    decision = can_register(event, user_id, now)
    if not decision.allowed:
        raise RegistrationError(decision.reason)

    registration = Registration(
        user_id=user_id,
        registered_at=ensure_utc(now),
        status=decision.resulting_status,
    )
    return [*event.registrations, registration], registration


def promote_waitlisted(registrations: list[Registration], max_attendees: int) -> list[Registration]:
    """
    Confirm the earliest waitlisted registrations while seats are free

    Updates the list in place and returns the promoted registrations.
    """
    promoted = []
    confirmed = sum(1 for r in registrations if r.status == RegistrationStatus.CONFIRMED)
    queue = sorted(
        (r.registered_at, i) for i, r in enumerate(registrations)
        if r.status == RegistrationStatus.WAITLISTED
    )
    for _, index in queue[:max(0, max_attendees - confirmed)]:
        registrations[index] = registrations[index].model_copy(update={"status": RegistrationStatus.CONFIRMED})
        promoted.append(registrations[index])
    return promoted


def apply_capacity(
    event: Event,
    max_attendees: int,
    promote: bool = True,
) -> tuple[list[Registration], list[Registration]]:
    """
    Registration list after changing an event's capacity

    Raises:
        ValidationError: Capacity below the confirmed count
    """
    confirmed = event.count(RegistrationStatus.CONFIRMED)
    if max_attendees < confirmed:
        raise ValidationError(f"max_attendees cannot be lower than the {confirmed} confirmed registrations")

    registrations = [registration.model_copy() for registration in event.registrations]
    promoted = promote_waitlisted(registrations, max_attendees) if promote else []
    return registrations, promoted


def apply_cancellation(
    event: Event,
    user_id: str,
    promote: bool = True,
) -> tuple[list[Registration], Registration, Optional[Registration]]:
    """
    Registration list with the user's active registration cancelled

    When a confirmed slot frees up and promotion is on, the earliest
    waitlisted registration becomes confirmed.

    Returns:
        Tuple of (registrations, cancelled registration, promoted registration or None)

    Raises:
        InvalidStateError: The user has no active registration
    """
    registrations = [registration.model_copy() for registration in event.registrations]
    index = next(
        (
            i for i, registration in enumerate(registrations)
            if registration.user_id == user_id and registration.status != RegistrationStatus.CANCELLED
        ),
        None,
    )
    if index is None:
        raise InvalidStateError("No active registration for this event")

    was_confirmed = registrations[index].status == RegistrationStatus.CONFIRMED
    registrations[index] = registrations[index].model_copy(update={"status": RegistrationStatus.CANCELLED})
    cancelled = registrations[index]

    promoted = None
    if promote and was_confirmed:
        promoted = next(iter(promote_waitlisted(registrations, event.max_attendees)), None)

    return registrations, cancelled, promoted


class RegistrationService:
    """Registers and unregisters users against stored events"""

    def __init__(self, store: EntityStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def _load_event(self, event_id: str) -> Event:
        return Event.model_validate(await self.store.get(EntityKind.EVENT, event_id))

    async def _check_eligibility(self, event: Event, user_id: str) -> None:
        if not event.is_active:
            raise InvalidStateError("Event is not active")

        user = User.model_validate(await self.store.get(EntityKind.USER, user_id))
        if not user.is_active:
            raise Forbidden("Account is deactivated")
        if event.event_type == EventType.COLLEGE_SPECIFIC and user.college_id != event.target_college_id:
            raise Forbidden("This event is only open to students of the host college")

    async def _write(self, event: Event, registrations: list[Registration]) -> None:
        await self.store.update(
            EntityKind.EVENT,
            event.id,
            {"registrations": [to_document(r) for r in registrations]},
            expected_version=event.version,
        )

    async def register(self, event_id: str, user_id: str, now: Optional[datetime] = None) -> Registration:
        """
        Register a user for an event

        The capacity check and the append are retried together when another
        writer changes the event in between.

        Raises:
            NotFoundError: Event or user missing
            InvalidStateError: Event inactive
            Forbidden: User not eligible for a college-specific event
            RegistrationError: Deadline passed or already registered
            ConflictError: Too much contention on the event
        """
        now = now or utcnow()
        for attempt in range(self.settings.REGISTRATION_RETRY_LIMIT):
            event = await self._load_event(event_id)
            await self._check_eligibility(event, user_id)

            registrations, registration = apply_registration(event, user_id, now)
            try:
                await self._write(event, registrations)
            except StaleEntityError:
                logger.info("Event %s changed during registration, retrying (attempt %d)", event_id, attempt + 1)
                continue

            logger.info("User %s registered for event %s as %s", user_id, event_id, registration.status.value)
            return registration

        raise ConflictError("Event is busy, please retry")

    async def unregister(self, event_id: str, user_id: str) -> Registration:
        """
        Cancel a user's active registration

        Raises:
            InvalidStateError: No active registration (including a second cancel)
        """
        for attempt in range(self.settings.REGISTRATION_RETRY_LIMIT):
            event = await self._load_event(event_id)
            registrations, cancelled, promoted = apply_cancellation(
                event, user_id, promote=self.settings.WAITLIST_PROMOTION
            )
            try:
                await self._write(event, registrations)
            except StaleEntityError:
                logger.info("Event %s changed during cancellation, retrying (attempt %d)", event_id, attempt + 1)
                continue

            logger.info("User %s cancelled registration for event %s", user_id, event_id)
            if promoted:
                logger.info("User %s promoted from waitlist for event %s", promoted.user_id, event_id)
            return cancelled

        raise ConflictError("Event is busy, please retry")

    async def registration_for(self, event_id: str, user_id: str, now: Optional[datetime] = None) -> dict:
        """A user's registration, the event's window state and what registering would do"""
        now = now or utcnow()
        event = await self._load_event(event_id)
        return {
            "event_id": event.id,
            "registration_status": registration_status(event, now),
            "available_spots": available_spots(event),
            "registration": event.active_registration(user_id),
            "decision": can_register(event, user_id, now),
        }
