"""
Value types shared by the resolution engine and the service layer.

These are plain dataclasses, independent of SQLAlchemy, so the merge logic
can be exercised without a database.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, time
from typing import Literal

SlotStatus = Literal["scheduled", "cancelled", "replaced"]

STATUS_SCHEDULED = "scheduled"
STATUS_CANCELLED = "cancelled"
STATUS_REPLACED = "replaced"
VALID_STATUSES = frozenset({STATUS_SCHEDULED, STATUS_CANCELLED, STATUS_REPLACED})

ROLE_FACULTY = "faculty"
ROLE_CLASS_REPRESENTATIVE = "cr"


@dataclass(frozen=True)
class DefaultSlot:
    class_id: uuid.UUID
    weekday: int  # 1 = Monday ... 7 = Sunday
    course_code: str
    start_time: time
    end_time: time
    venue: str


@dataclass(frozen=True)
class DailyOverride:
    class_id: uuid.UUID
    date: date
    slot_index: int
    status: SlotStatus
    course_code: str = ""
    start_time: time | None = None
    end_time: time | None = None
    venue: str = ""
    id: uuid.UUID | None = None


@dataclass(frozen=True)
class ResolvedSlot:
    slot_index: int = 0
    course_code: str = ""
    start_time: time | None = None
    end_time: time | None = None
    venue: str = ""
    status: SlotStatus | Literal[""] = ""


@dataclass(frozen=True)
class AnnouncementSettings:
    class_id: uuid.UUID
    matrix_room_id: str
    daily_announce_time: time
    daily_template: str
    update_template: str
    last_announced_date: date | None = None


@dataclass(frozen=True)
class IdentityRole:
    name: str
    class_id: uuid.UUID | None = None


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    roles: list[IdentityRole] = field(default_factory=list)
