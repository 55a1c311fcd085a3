from __future__ import annotations

import uuid

from daily_timetable.domain import ROLE_CLASS_REPRESENTATIVE, ROLE_FACULTY, Identity


def is_authorized(identity: Identity, class_id: uuid.UUID) -> bool:
    """
    May `identity` edit today's timetable for `class_id`?

    `faculty` may edit any class; `cr` (class representative) only the class
    the role is bound to. No other role grants access.
    """
    for role in identity.roles:
        if role.name == ROLE_FACULTY:
            return True
        if role.name == ROLE_CLASS_REPRESENTATIVE and role.class_id == class_id:
            return True
    return False
