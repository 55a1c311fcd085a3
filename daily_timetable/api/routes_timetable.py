from __future__ import annotations

import uuid
from datetime import date as date_type, datetime, time
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict

from daily_timetable.core.config import settings
from daily_timetable.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TimetableError,
    UnauthorizedError,
)
from daily_timetable.db import SessionLocal
from daily_timetable.services.clock import load_zone
from daily_timetable.services.events import SlotPayload, slot_to_payload
from daily_timetable.services.timetable import TimetableService
from daily_timetable.utils.identity_client import get_identity_client


router = APIRouter(tags=["timetable"])


@lru_cache
def get_timetable_service() -> TimetableService:
    return TimetableService(
        SessionLocal,
        get_identity_client(),
        tz=load_zone(settings.TIMETABLE_TZ),
    )


# ========= Schemas =========

class UpdateTodayRequest(BaseModel):
    class_id: str
    slot_index: int
    course_code: str = ""
    start_time: str = ""
    end_time: str = ""
    venue: str = ""
    status: str

    model_config = ConfigDict(extra="forbid")


def _parse_uuid(value: str | None, what: str) -> uuid.UUID:
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing {what}")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {what}")


def _parse_time(value: str, what: str) -> time | None:
    """'HH:MM' or empty."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {what}, expected HH:MM")


def _to_http_error(exc: TimetableError) -> HTTPException:
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=403, detail="Forbidden")
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail="Not found")
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail="Conflict")
    return HTTPException(status_code=500, detail="Internal error")


# ========= Endpoints =========

@router.post("/admin/timetable/today", status_code=204)
def update_today(
    body: UpdateTodayRequest,
    x_user_id: str | None = Header(default=None),
    service: TimetableService = Depends(get_timetable_service),
):
    """
    Create or replace today's override for one slot of a class.
    RBAC: faculty (any class), cr (own class only)
    """
    requester_id = _parse_uuid(x_user_id, "X-User-ID header")
    class_id = _parse_uuid(body.class_id, "class_id")
    start_time = _parse_time(body.start_time, "start_time")
    end_time = _parse_time(body.end_time, "end_time")

    try:
        service.update_today_override(
            requester_id,
            class_id,
            body.slot_index,
            body.course_code,
            start_time,
            end_time,
            body.venue,
            body.status,
        )
    except TimetableError as exc:
        raise _to_http_error(exc) from exc

    return Response(status_code=204)


@router.get("/timetable/classes/{class_id}/resolved", response_model=List[SlotPayload])
def get_resolved_timetable(
    class_id: uuid.UUID,
    date: date_type | None = Query(default=None),
    service: TimetableService = Depends(get_timetable_service),
):
    """Resolved slots for one class and date (today when omitted)."""
    day = date or service.today()
    try:
        slots = service.resolve_timetable(class_id, day)
    except TimetableError as exc:
        raise _to_http_error(exc) from exc
    return [slot_to_payload(s) for s in slots]
