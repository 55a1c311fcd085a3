import uuid

import pytest
import requests

from daily_timetable.core.errors import InternalError, NotFoundError, UnauthorizedError
from daily_timetable.domain import IdentityRole
from daily_timetable.utils.identity_client import IdentityHTTPClient

USER_ID = uuid.uuid4()
CLASS_ID = uuid.uuid4()


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _client(session):
    return IdentityHTTPClient("http://identity:8080/", timeout=2.5, session=session)


def test_get_me_parses_roles():
    session = FakeSession(
        FakeResponse(
            200,
            {
                "user": {"id": str(USER_ID), "full_name": "Ada Lovelace"},
                "roles": [
                    {"name": "faculty", "class_id": None},
                    {"name": "cr", "class_id": str(CLASS_ID)},
                ],
            },
        )
    )

    identity = _client(session).get_me(USER_ID)

    assert identity.id == USER_ID
    assert identity.roles == [IdentityRole("faculty"), IdentityRole("cr", CLASS_ID)]
    assert session.requests == [
        {
            "url": "http://identity:8080/me",
            "headers": {"X-User-ID": str(USER_ID)},
            "timeout": 2.5,
        }
    ]


def test_get_me_without_roles():
    session = FakeSession(FakeResponse(200, {"user": {"id": str(USER_ID)}}))

    assert _client(session).get_me(USER_ID).roles == []


def test_not_found():
    with pytest.raises(NotFoundError):
        _client(FakeSession(FakeResponse(404))).get_me(USER_ID)


@pytest.mark.parametrize("status", [401, 403])
def test_unauthorized(status):
    with pytest.raises(UnauthorizedError):
        _client(FakeSession(FakeResponse(status))).get_me(USER_ID)


def test_unexpected_status_is_internal():
    with pytest.raises(InternalError):
        _client(FakeSession(FakeResponse(502))).get_me(USER_ID)


def test_timeout_is_internal():
    with pytest.raises(InternalError):
        _client(FakeSession(error=requests.Timeout("read timed out"))).get_me(USER_ID)


def test_missing_user_id_is_internal():
    with pytest.raises(InternalError):
        _client(FakeSession(FakeResponse(200, {"user": {}, "roles": []}))).get_me(USER_ID)


def test_malformed_body_is_internal():
    with pytest.raises(InternalError):
        _client(FakeSession(FakeResponse(200))).get_me(USER_ID)


def test_bad_role_class_id_is_internal():
    body = {"user": {"id": str(USER_ID)}, "roles": [{"name": "cr", "class_id": "not-a-uuid"}]}

    with pytest.raises(InternalError):
        _client(FakeSession(FakeResponse(200, body))).get_me(USER_ID)


def test_missing_base_url_is_internal():
    with pytest.raises(InternalError):
        IdentityHTTPClient("", session=FakeSession()).get_me(USER_ID)
