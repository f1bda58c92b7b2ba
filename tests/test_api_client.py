"""Tests for RecordsClient retry and error handling."""

import json

import pytest
import requests

from stopwatch_app.adapters.http_adapters.api_client import RecordsClient
from stopwatch_app.utils.custom_exception import ApiError

BASE = "http://stopwatch.test"


def make_response(status: int, payload=None, url: str = BASE, reason: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.reason = reason
    if payload is None:
        response._content = b""
    else:
        response._content = json.dumps(payload).encode()
        response.headers["Content-Type"] = "application/json"
    return response


class ScriptedSession:
    """Session that replays a fixed list of responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


RECORD = {"id": 1, "userId": None, "title": "t", "duration": 5, "createdAt": "2024-01-01T00:00:00.000Z"}


class TestRetries:
    """Network errors are retried a bounded number of times."""

    def test_query_retried_three_times(self) -> None:
        session = ScriptedSession(
            requests.ConnectionError("down"),
            requests.ConnectionError("down"),
            requests.Timeout("slow"),
            make_response(200, [RECORD]),
        )
        client = RecordsClient(BASE, session=session)

        assert client.list_records() == [RECORD]
        assert len(session.calls) == 4

    def test_query_gives_up_after_retries(self) -> None:
        session = ScriptedSession(*[requests.ConnectionError("down") for _ in range(4)])
        client = RecordsClient(BASE, session=session)

        with pytest.raises(requests.ConnectionError):
            client.list_records()
        assert len(session.calls) == 4

    def test_mutation_retried_twice(self) -> None:
        session = ScriptedSession(*[requests.ConnectionError("down") for _ in range(3)])
        client = RecordsClient(BASE, session=session)

        with pytest.raises(requests.ConnectionError):
            client.create_record(1500)
        assert len(session.calls) == 3

    def test_http_errors_are_not_retried(self) -> None:
        details = {"error": "Invalid record data", "details": {"duration": "must be an integer"}}
        session = ScriptedSession(make_response(400, details, url=f"{BASE}/api/stopwatch-records"))
        client = RecordsClient(BASE, session=session)

        with pytest.raises(ApiError) as excinfo:
            client.create_record(-1)

        assert len(session.calls) == 1
        assert excinfo.value.status == 400
        assert excinfo.value.details == details
        assert str(excinfo.value) == "400: Invalid record data"


class TestRequests:
    """Request shaping and not-found handling."""

    def test_create_sends_only_given_fields(self) -> None:
        session = ScriptedSession(make_response(201, RECORD))
        client = RecordsClient(BASE + "/", session=session)

        assert client.create_record(5, title="t") == RECORD
        method, url, kwargs = session.calls[0]
        assert method == "POST"
        assert url == f"{BASE}/api/stopwatch-records"
        assert kwargs["json"] == {"duration": 5, "title": "t"}

    def test_list_passes_user_filter(self) -> None:
        session = ScriptedSession(make_response(200, []))
        RecordsClient(BASE, session=session).list_records(user_id=0)
        assert session.calls[0][2]["params"] == {"userId": 0}

    def test_get_missing_returns_none(self) -> None:
        session = ScriptedSession(make_response(404, {"error": "Record not found"}))
        assert RecordsClient(BASE, session=session).get_record(9) is None

    def test_delete(self) -> None:
        session = ScriptedSession(make_response(204), make_response(404, {"error": "Record not found"}))
        client = RecordsClient(BASE, session=session)
        assert client.delete_record(1) is True
        assert client.delete_record(1) is False

    def test_server_error_propagates(self) -> None:
        session = ScriptedSession(make_response(500, {"error": "Failed to fetch stopwatch record"}))
        with pytest.raises(ApiError) as excinfo:
            RecordsClient(BASE, session=session).get_record(1)
        assert excinfo.value.status == 500
