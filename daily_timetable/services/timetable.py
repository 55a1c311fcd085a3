"""
Timetable service: override edits and the daily announcement check.

Both paths write their state change and the matching outbox event in the
same transaction, so an edit is never stored without its late-update notice
and a class is never marked announced without its announcement queued.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, time, timezone, tzinfo
from typing import Callable, Iterator, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from daily_timetable.core.errors import (
    AnnouncementTickError,
    ConflictError,
    InternalError,
    InvalidInputError,
    UnauthorizedError,
)
from daily_timetable.core.rbac import is_authorized
from daily_timetable.db import transaction
from daily_timetable.domain import (
    STATUS_CANCELLED,
    VALID_STATUSES,
    AnnouncementSettings,
    DailyOverride,
    Identity,
    ResolvedSlot,
)
from daily_timetable.services import clock, events, repositories
from daily_timetable.services.resolution import merge_timetable, resolve_single_slot

logger = logging.getLogger(__name__)


class IdentityClient(Protocol):
    def get_me(self, requester_id: uuid.UUID) -> Identity: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_override(
    slot_index: int,
    course_code: str,
    start_time: time | None,
    end_time: time | None,
    venue: str,
    status: str,
) -> None:
    if slot_index <= 0:
        raise InvalidInputError("slot_index must be positive")
    if status not in VALID_STATUSES:
        raise InvalidInputError(f"Unknown status: {status!r}")
    if status != STATUS_CANCELLED:
        if not course_code or start_time is None or end_time is None or not venue:
            raise InvalidInputError(
                "course_code, start_time, end_time and venue are required unless cancelled"
            )


def should_emit_late_update(
    settings: AnnouncementSettings,
    day: date,
    now: datetime,
    tz: tzinfo,
) -> bool:
    """The day was already announced and the edit arrives after announce time."""
    if settings.last_announced_date is None:
        return False
    if settings.last_announced_date != day:
        return False
    return clock.past_announce_time(now, settings.daily_announce_time, tz)


def is_announcement_due(settings: AnnouncementSettings, now: datetime, tz: tzinfo) -> bool:
    if not clock.reached_announce_time(now, settings.daily_announce_time, tz):
        return False
    if settings.last_announced_date is None:
        return True
    return settings.last_announced_date < clock.local_date(now, tz)


class TimetableService:
    def __init__(
        self,
        session_factory: sessionmaker,
        identity: IdentityClient,
        tz: tzinfo = timezone.utc,
        clock_fn: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.identity = identity
        self.tz = tz
        self.clock = clock_fn

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        """Transaction that maps storage failures onto the error taxonomy."""
        try:
            with transaction(self.session_factory) as db:
                yield db
        except IntegrityError as exc:
            raise ConflictError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise InternalError(f"Storage failure: {exc}") from exc

    def today(self) -> date:
        return clock.local_date(self.clock(), self.tz)

    # ========= Override command =========

    def update_today_override(
        self,
        requester_id: uuid.UUID,
        class_id: uuid.UUID,
        slot_index: int,
        course_code: str,
        start_time: time | None,
        end_time: time | None,
        venue: str,
        status: str,
    ) -> None:
        self.create_daily_override(
            requester_id,
            class_id,
            self.today(),
            slot_index,
            course_code,
            start_time,
            end_time,
            venue,
            status,
        )

    def create_daily_override(
        self,
        requester_id: uuid.UUID,
        class_id: uuid.UUID,
        day: date,
        slot_index: int,
        course_code: str,
        start_time: time | None,
        end_time: time | None,
        venue: str,
        status: str,
    ) -> None:
        """
        Validate, authorize and store an override for `day`.

        Raises InvalidInputError before any I/O, NotFoundError/UnauthorizedError
        after the identity lookup, and ConflictError/InternalError when the
        transaction fails (in which case nothing is stored).
        """
        validate_override(slot_index, course_code, start_time, end_time, venue, status)

        user = self.identity.get_me(requester_id)
        if not is_authorized(user, class_id):
            raise UnauthorizedError(f"User {requester_id} may not edit class {class_id}")

        override = DailyOverride(
            id=uuid.uuid4(),
            class_id=class_id,
            date=day,
            slot_index=slot_index,
            status=status,
            course_code=course_code or "",
            start_time=start_time,
            end_time=end_time,
            venue=venue or "",
        )

        with self._unit_of_work() as db:
            repositories.upsert_override(db, override)

            settings = repositories.get_settings(db, class_id)
            if settings is None:
                return
            if not should_emit_late_update(settings, day, self.clock(), self.tz):
                return

            defaults = repositories.list_default_slots(db, class_id, clock.weekday_number(day))
            slot = resolve_single_slot(defaults, slot_index, override)
            payload = events.timetable_updated(settings, day, slot, str(requester_id))
            repositories.insert_outbox_event(db, events.TIMETABLE_UPDATED, payload)

        logger.info(
            "Late update queued for class %s on %s (slot %d) by %s",
            class_id, day.isoformat(), slot_index, requester_id,
        )

    # ========= Resolution =========

    def _resolve_with_session(self, db: Session, class_id: uuid.UUID, day: date) -> list[ResolvedSlot]:
        defaults = repositories.list_default_slots(db, class_id, clock.weekday_number(day))
        overrides = repositories.list_overrides(db, class_id, day)
        return merge_timetable(defaults, overrides)

    def resolve_timetable(self, class_id: uuid.UUID, day: date) -> list[ResolvedSlot]:
        with self._unit_of_work() as db:
            return self._resolve_with_session(db, class_id, day)

    # ========= Announcement check =========

    def emit_daily_announcement_if_due(self, now: datetime) -> list[uuid.UUID]:
        """
        Announce every class whose daily announce time has passed and which
        has not been announced for the local date of `now` yet.

        Each class is claimed and announced in its own transaction; a failure
        for one class does not stop the others. Failures are raised together
        as AnnouncementTickError once every class has been tried.

        Returns the IDs of the classes announced by this call.
        """
        with self._unit_of_work() as db:
            all_settings = repositories.list_settings(db)

        today = clock.local_date(now, self.tz)
        announced: list[uuid.UUID] = []
        failures: dict[uuid.UUID, Exception] = {}

        for settings in all_settings:
            if not is_announcement_due(settings, now, self.tz):
                continue
            try:
                if self._announce(settings, today):
                    announced.append(settings.class_id)
            except Exception as exc:
                logger.exception("Daily announcement failed for class %s", settings.class_id)
                failures[settings.class_id] = exc

        if failures:
            raise AnnouncementTickError(failures)
        return announced

    def _announce(self, settings: AnnouncementSettings, today: date) -> bool:
        with self._unit_of_work() as db:
            if not repositories.mark_announced(db, settings.class_id, today):
                logger.debug(
                    "Class %s already announced for %s", settings.class_id, today.isoformat()
                )
                return False

            slots = self._resolve_with_session(db, settings.class_id, today)
            payload = events.daily_announcement(settings, today, slots)
            repositories.insert_outbox_event(db, events.DAILY_TIMETABLE_ANNOUNCED, payload)

        logger.info(
            "Daily timetable queued for class %s on %s (%d slots)",
            settings.class_id, today.isoformat(), len(slots),
        )
        return True
