"""
HTTP client for the identity service's GET /me endpoint.
"""
from __future__ import annotations

import logging
import uuid

import requests

from daily_timetable.core.config import settings
from daily_timetable.core.errors import InternalError, NotFoundError, UnauthorizedError
from daily_timetable.domain import Identity, IdentityRole

logger = logging.getLogger(__name__)


class IdentityHTTPClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_me(self, requester_id: uuid.UUID) -> Identity:
        """
        Look up `requester_id` and its roles.

        404 -> NotFoundError, 401/403 -> UnauthorizedError; transport errors,
        timeouts and any other unexpected answer -> InternalError.
        """
        if not self.base_url:
            raise InternalError("Identity service URL is not configured")

        try:
            response = self.session.get(
                f"{self.base_url}/me",
                headers={"X-User-ID": str(requester_id)},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Identity lookup for %s failed: %s", requester_id, exc)
            raise InternalError(f"Identity service unreachable: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"User {requester_id} not found")
        if response.status_code in (401, 403):
            raise UnauthorizedError(f"Identity service denied user {requester_id}")
        if response.status_code != 200:
            raise InternalError(f"Identity service unexpected status: {response.status_code}")

        try:
            body = response.json()
            user_id = (body.get("user") or {}).get("id")
            if not user_id:
                raise InternalError("Identity response missing id")

            roles = [
                IdentityRole(
                    name=str(role.get("name", "")),
                    class_id=uuid.UUID(role["class_id"]) if role.get("class_id") else None,
                )
                for role in body.get("roles") or []
            ]
            return Identity(id=uuid.UUID(str(user_id)), roles=roles)
        except (ValueError, TypeError, AttributeError) as exc:
            raise InternalError(f"Malformed identity response: {exc}") from exc


def get_identity_client() -> IdentityHTTPClient:
    return IdentityHTTPClient(
        settings.IDENTITY_BASE_URL,
        timeout=settings.IDENTITY_TIMEOUT_SECONDS,
    )
