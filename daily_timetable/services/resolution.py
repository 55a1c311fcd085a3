"""
Pure merge of a weekday's default slots with a date's overrides.

Nothing here touches storage; callers load rows and pass them in.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from daily_timetable.domain import (
    STATUS_CANCELLED,
    STATUS_SCHEDULED,
    DailyOverride,
    DefaultSlot,
    ResolvedSlot,
)


def base_slots(defaults: Sequence[DefaultSlot]) -> list[ResolvedSlot]:
    """
    Turn a weekday's defaults into scheduled slots numbered 1..n by start time.
    """
    ordered = sorted(defaults, key=lambda d: d.start_time)
    return [
        ResolvedSlot(
            slot_index=idx,
            course_code=d.course_code,
            start_time=d.start_time,
            end_time=d.end_time,
            venue=d.venue,
            status=STATUS_SCHEDULED,
        )
        for idx, d in enumerate(ordered, start=1)
    ]


def apply_override(base: ResolvedSlot, override: DailyOverride) -> ResolvedSlot:
    """
    Merge one override onto a base slot (an empty ResolvedSlot when the
    index has no default).

    Cancellations only fill in course/venue the base lacks; scheduled and
    replaced overrides always take the override's course and a non-empty venue.
    Times are taken from the override whenever it sets them.
    """
    resolved = replace(base, slot_index=override.slot_index, status=override.status)

    if override.start_time is not None:
        resolved = replace(resolved, start_time=override.start_time)
    if override.end_time is not None:
        resolved = replace(resolved, end_time=override.end_time)

    if override.status == STATUS_CANCELLED:
        if not resolved.course_code:
            resolved = replace(resolved, course_code=override.course_code or "")
        if not resolved.venue:
            resolved = replace(resolved, venue=override.venue or "")
        return resolved

    resolved = replace(resolved, course_code=override.course_code or "")
    if override.venue:
        resolved = replace(resolved, venue=override.venue)
    return resolved


def merge_timetable(
    defaults: Sequence[DefaultSlot],
    overrides: Iterable[DailyOverride],
) -> list[ResolvedSlot]:
    """
    Resolve a full day. Overrides past the last default extend the list;
    indices nobody defines are skipped rather than filled.
    """
    by_index: dict[int, ResolvedSlot] = {s.slot_index: s for s in base_slots(defaults)}

    for override in overrides:
        by_index[override.slot_index] = apply_override(
            by_index.get(override.slot_index, ResolvedSlot()),
            override,
        )

    return [by_index[i] for i in sorted(by_index)]


def resolve_single_slot(
    defaults: Sequence[DefaultSlot],
    slot_index: int,
    override: DailyOverride,
) -> ResolvedSlot:
    """Resolve only `slot_index`, for a minimal late-update notice."""
    base = ResolvedSlot()
    slots = base_slots(defaults)
    if 0 < slot_index <= len(slots):
        base = slots[slot_index - 1]

    resolved = apply_override(base, override)
    if resolved.slot_index == 0:
        resolved = replace(resolved, slot_index=slot_index)
    return resolved
