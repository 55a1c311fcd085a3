# daily_timetable/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    SmallInteger,
    String,
    Text,
    Time,
    Uuid,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

from daily_timetable.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DefaultSlot(Base):
    __tablename__ = "default_slots"
    __table_args__ = (
        Index("ix_default_slots_class_weekday", "class_id", "weekday"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Uuid, nullable=False)
    weekday = Column(SmallInteger, nullable=False)  # 1 = Monday ... 7 = Sunday
    course_code = Column(String(50), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    venue = Column(String(100), nullable=False, default="")


class DailyOverride(Base):
    __tablename__ = "daily_overrides"
    __table_args__ = (
        UniqueConstraint("class_id", "date", "slot_index", name="uq_daily_overrides_class_date_slot"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, nullable=False)
    date = Column(Date, nullable=False)
    slot_index = Column(Integer, nullable=False)
    course_code = Column(String(50), nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    venue = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False)  # scheduled | cancelled | replaced
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class AnnouncementSettings(Base):
    __tablename__ = "announcement_settings"

    class_id = Column(Uuid, primary_key=True)
    matrix_room_id = Column(String(255), nullable=False)
    daily_announce_time = Column(Time, nullable=False)
    daily_template = Column(Text, nullable=False, default="")
    update_template = Column(Text, nullable=False, default="")
    # Idempotency marker: only ever moved forward by the announce claim
    last_announced_date = Column(Date, nullable=True)


class OutboxEvent(Base):
    __tablename__ = "outbox_events"
    __table_args__ = (
        Index("ix_outbox_events_unpublished", "published", "created_at"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    published = Column(Boolean, nullable=False, default=False)
