from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from daily_timetable import models
from daily_timetable.core.errors import NotFoundError
from daily_timetable.db import Base, make_session_factory
from daily_timetable.domain import Identity, IdentityRole
from daily_timetable.services.timetable import TimetableService

# 2024-01-15 is a Monday
MONDAY = date(2024, 1, 15)

CLASS_A = uuid.UUID("aaaaaaaa-0000-0000-0000-000000000001")
CLASS_B = uuid.UUID("bbbbbbbb-0000-0000-0000-000000000002")

FACULTY_ID = uuid.UUID("11111111-0000-0000-0000-000000000001")
CR_A_ID = uuid.UUID("22222222-0000-0000-0000-000000000002")
STUDENT_ID = uuid.UUID("33333333-0000-0000-0000-000000000003")


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeIdentityClient:
    """Identity service stand-in keyed by requester id."""

    def __init__(self, users: dict[uuid.UUID, Identity]):
        self.users = users
        self.calls: list[uuid.UUID] = []

    def get_me(self, requester_id: uuid.UUID) -> Identity:
        self.calls.append(requester_id)
        if requester_id not in self.users:
            raise NotFoundError(f"User {requester_id} not found")
        return self.users[requester_id]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def identity():
    return FakeIdentityClient(
        {
            FACULTY_ID: Identity(id=FACULTY_ID, roles=[IdentityRole(name="faculty")]),
            CR_A_ID: Identity(id=CR_A_ID, roles=[IdentityRole(name="cr", class_id=CLASS_A)]),
            STUDENT_ID: Identity(id=STUDENT_ID, roles=[IdentityRole(name="student")]),
        }
    )


@pytest.fixture
def frozen_clock():
    return FrozenClock(datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def service(session_factory, identity, frozen_clock):
    return TimetableService(session_factory, identity, tz=timezone.utc, clock_fn=frozen_clock)


@pytest.fixture
def monday_defaults(session_factory):
    """CS101 09:00-10:00 R1 and CS102 10:00-11:00 R2 on Mondays for class A."""
    with session_factory() as db:
        db.add_all(
            [
                # inserted out of order on purpose: resolution orders by start time
                models.DefaultSlot(
                    class_id=CLASS_A, weekday=1, course_code="CS102",
                    start_time=time(10, 0), end_time=time(11, 0), venue="R2",
                ),
                models.DefaultSlot(
                    class_id=CLASS_A, weekday=1, course_code="CS101",
                    start_time=time(9, 0), end_time=time(10, 0), venue="R1",
                ),
                models.DefaultSlot(
                    class_id=CLASS_A, weekday=2, course_code="CS201",
                    start_time=time(9, 0), end_time=time(10, 0), venue="R3",
                ),
            ]
        )
        db.commit()


def add_settings(session_factory, class_id, announce_at=time(8, 0), last_announced=None):
    with session_factory() as db:
        db.add(
            models.AnnouncementSettings(
                class_id=class_id,
                matrix_room_id=f"!room-{class_id.hex[:6]}:matrix.org",
                daily_announce_time=announce_at,
                daily_template="Today's timetable",
                update_template="Timetable changed",
                last_announced_date=last_announced,
            )
        )
        db.commit()


def outbox_events(session_factory, event_type=None):
    with session_factory() as db:
        query = db.query(models.OutboxEvent)
        if event_type:
            query = query.filter(models.OutboxEvent.event_type == event_type)
        return query.order_by(models.OutboxEvent.created_at).all()


def last_announced(session_factory, class_id):
    with session_factory() as db:
        row = db.get(models.AnnouncementSettings, class_id)
        return row.last_announced_date
