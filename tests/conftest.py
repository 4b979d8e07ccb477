import os

# Cheap hashing and the in-memory store for every test
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import timedelta

import pytest

from membership.auth.password import hash_password
from membership.config import Settings
from membership.schemas.admin import AdminRole, CreateAdminRequest, parse_admin
from membership.schemas.college import CreateCollegeRequest
from membership.schemas.event import CreateEventRequest, EventType
from membership.schemas.user import RegisterUserRequest
from membership.services import Services
from membership.store import EntityKind, InMemoryEntityStore
from membership.time_utils import utcnow


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        STORE_BACKEND="memory",
        BCRYPT_ROUNDS=4,
        JWT_SECRET_KEY="test-secret",
        MEMBER_ID_PREFIX="DEVS",
        _env_file=None,
    )


@pytest.fixture
def store():
    return InMemoryEntityStore()


@pytest.fixture
def services(store, settings):
    return Services(store, settings)


class Factory:
    """Builds colleges, admins, members and events through the services"""

    def __init__(self, services: Services):
        self.services = services
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def college(self, name=None, code=None):
        n = self._next()
        return await self.services.colleges.create_college(CreateCollegeRequest(
            name=name or f"College {n}",
            code=code or f"C{n:02d}",
            location="Chennai",
            address=f"{n} College Road",
            contact_info={"email": f"office{n}@college.edu", "phone": "0441234567"},
        ))

    async def college_admin(self, college_id, batch_year=2025, username=None, password="secret123"):
        n = self._next()
        admin, _ = await self.services.admins.create_college_admin(CreateAdminRequest(
            username=username or f"admin{n}",
            email=f"admin{n}@example.com",
            password=password,
            full_name=f"Admin {n}",
            college_id=college_id,
            batch_year=batch_year,
        ))
        return admin

    async def unassigned_admin(self, username=None):
        n = self._next()
        doc = await self.services.store.create(EntityKind.ADMIN, {
            "username": username or f"spare{n}",
            "email": f"spare{n}@example.com",
            "password_hash": hash_password("secret123"),
            "full_name": f"Spare Admin {n}",
            "role": AdminRole.ADMIN.value,
            "assigned_college_id": None,
            "batch_year": None,
            "tenure": None,
            "is_active": True,
            "last_login": None,
        })
        return parse_admin(doc)

    async def super_admin(self, username=None, password="rootpass1"):
        n = self._next()
        return await self.services.admins.create_super_admin(
            username or f"root{n}", f"root{n}@example.com", password, f"Root {n}"
        )

    async def user(self, college_name="Unlisted College", batch_year="2025", email=None):
        n = self._next()
        return await self.services.users.register_user(RegisterUserRequest(
            full_name=f"Member {n}",
            email=email or f"member{n}@example.com",
            phone="9876543210",
            college=college_name,
            batch_year=batch_year,
        ))

    async def event(
        self,
        organizer,
        max_attendees=2,
        deadline=None,
        event_type=EventType.OPEN_TO_ALL,
        target_college_id=None,
    ):
        return await self.services.events.create_event(
            CreateEventRequest(
                title="Intro to Rust",
                description="Hands-on workshop on ownership and borrowing",
                date=utcnow() + timedelta(days=14),
                location="Seminar Hall B",
                event_type=event_type,
                target_college_id=target_college_id,
                max_attendees=max_attendees,
                registration_deadline=deadline or utcnow() + timedelta(days=7),
            ),
            organizer=organizer,
        )


@pytest.fixture
def factory(services):
    return Factory(services)
