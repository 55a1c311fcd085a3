"""
Storage access for the timetable service.

Every function takes the caller's Session and never commits: the service
layer owns the transaction boundary.
"""
from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from daily_timetable import domain
from daily_timetable.core.errors import InternalError
from daily_timetable.models import (
    AnnouncementSettings,
    DailyOverride,
    DefaultSlot,
    OutboxEvent,
)


def _settings_from_row(row: AnnouncementSettings) -> domain.AnnouncementSettings:
    return domain.AnnouncementSettings(
        class_id=row.class_id,
        matrix_room_id=row.matrix_room_id,
        daily_announce_time=row.daily_announce_time,
        daily_template=row.daily_template or "",
        update_template=row.update_template or "",
        last_announced_date=row.last_announced_date,
    )


def list_default_slots(db: Session, class_id: uuid.UUID, weekday: int) -> list[domain.DefaultSlot]:
    rows = (
        db.query(DefaultSlot)
        .filter(DefaultSlot.class_id == class_id)
        .filter(DefaultSlot.weekday == weekday)
        .order_by(DefaultSlot.start_time.asc(), DefaultSlot.id.asc())
        .all()
    )
    return [
        domain.DefaultSlot(
            class_id=r.class_id,
            weekday=int(r.weekday),
            course_code=r.course_code,
            start_time=r.start_time,
            end_time=r.end_time,
            venue=r.venue or "",
        )
        for r in rows
    ]


def list_overrides(db: Session, class_id: uuid.UUID, day: date) -> list[domain.DailyOverride]:
    rows = (
        db.query(DailyOverride)
        .filter(DailyOverride.class_id == class_id)
        .filter(DailyOverride.date == day)
        .order_by(DailyOverride.slot_index.asc())
        .all()
    )
    return [
        domain.DailyOverride(
            id=r.id,
            class_id=r.class_id,
            date=r.date,
            slot_index=int(r.slot_index),
            status=r.status,
            course_code=r.course_code or "",
            start_time=r.start_time,
            end_time=r.end_time,
            venue=r.venue or "",
        )
        for r in rows
    ]


def upsert_override(db: Session, override: domain.DailyOverride) -> None:
    """
    Insert or replace the override keyed by (class_id, date, slot_index).
    A single INSERT ... ON CONFLICT DO UPDATE, so concurrent writers to the
    same key never produce two rows.
    """
    now = datetime.now(timezone.utc)
    values = {
        "id": override.id or uuid.uuid4(),
        "class_id": override.class_id,
        "date": override.date,
        "slot_index": override.slot_index,
        "course_code": override.course_code,
        "start_time": override.start_time,
        "end_time": override.end_time,
        "venue": override.venue,
        "status": override.status,
        "created_at": now,
        "updated_at": now,
    }

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        raise InternalError(f"Override upsert not supported on {dialect}")

    stmt = insert(DailyOverride).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[DailyOverride.class_id, DailyOverride.date, DailyOverride.slot_index],
        set_={
            "course_code": stmt.excluded.course_code,
            "start_time": stmt.excluded.start_time,
            "end_time": stmt.excluded.end_time,
            "venue": stmt.excluded.venue,
            "status": stmt.excluded.status,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)


def get_settings(db: Session, class_id: uuid.UUID) -> domain.AnnouncementSettings | None:
    row = (
        db.query(AnnouncementSettings)
        .filter(AnnouncementSettings.class_id == class_id)
        .first()
    )
    if row is None:
        return None
    return _settings_from_row(row)


def list_settings(db: Session) -> list[domain.AnnouncementSettings]:
    rows = db.query(AnnouncementSettings).order_by(AnnouncementSettings.class_id).all()
    return [_settings_from_row(r) for r in rows]


def mark_announced(db: Session, class_id: uuid.UUID, day: date) -> bool:
    """
    Claim `day` for `class_id`. Returns False when the stored date is already
    `day` or later, i.e. another tick got there first.
    """
    affected = (
        db.query(AnnouncementSettings)
        .filter(AnnouncementSettings.class_id == class_id)
        .filter(
            or_(
                AnnouncementSettings.last_announced_date.is_(None),
                AnnouncementSettings.last_announced_date < day,
            )
        )
        .update(
            {AnnouncementSettings.last_announced_date: day},
            synchronize_session=False,
        )
    )
    return affected > 0


def insert_outbox_event(db: Session, event_type: str, payload: BaseModel) -> OutboxEvent:
    event = OutboxEvent(
        event_type=event_type,
        payload=payload.model_dump(mode="json"),
    )
    db.add(event)
    db.flush()
    return event
