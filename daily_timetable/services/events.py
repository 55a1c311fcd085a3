"""
Outbox event shapes.

The relay that delivers these reads `event_type` and passes `payload` through
untouched, so field names here are the wire contract.
"""
from __future__ import annotations

from datetime import date, time
from typing import Iterable, List

from pydantic import BaseModel

from daily_timetable.domain import AnnouncementSettings, ResolvedSlot

DAILY_TIMETABLE_ANNOUNCED = "DailyTimetableAnnounced"
TIMETABLE_UPDATED = "TimetableUpdated"


class SlotPayload(BaseModel):
    slot_index: int
    course_code: str
    start_time: str  # "HH:MM" local, "" when unset
    end_time: str
    venue: str
    status: str


class DailyTimetableAnnounced(BaseModel):
    class_id: str
    date: str
    target: str
    template: str
    slots: List[SlotPayload]


class TimetableUpdated(BaseModel):
    class_id: str
    date: str
    update_template: str
    slots: List[SlotPayload]
    updated_by: str


def format_time(value: time | None) -> str:
    if value is None:
        return ""
    return value.strftime("%H:%M")


def slot_to_payload(slot: ResolvedSlot) -> SlotPayload:
    return SlotPayload(
        slot_index=slot.slot_index,
        course_code=slot.course_code,
        start_time=format_time(slot.start_time),
        end_time=format_time(slot.end_time),
        venue=slot.venue,
        status=slot.status,
    )


def daily_announcement(
    settings: AnnouncementSettings,
    day: date,
    slots: Iterable[ResolvedSlot],
) -> DailyTimetableAnnounced:
    return DailyTimetableAnnounced(
        class_id=str(settings.class_id),
        date=day.isoformat(),
        target=settings.matrix_room_id,
        template=settings.daily_template,
        slots=[slot_to_payload(s) for s in slots],
    )


def timetable_updated(
    settings: AnnouncementSettings,
    day: date,
    slot: ResolvedSlot,
    updated_by: str,
) -> TimetableUpdated:
    return TimetableUpdated(
        class_id=str(settings.class_id),
        date=day.isoformat(),
        update_template=settings.update_template,
        slots=[slot_to_payload(slot)],
        updated_by=updated_by,
    )
