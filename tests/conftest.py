"""Shared fixtures: a fake python-jenkins client and a controllable clock."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock, patch
from urllib.parse import urlsplit

import jenkins
import pytest
import requests

BASE_URL = "http://jenkins.local/"


def make_response(
    json_data: Any = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
    text: str = "",
) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = text
    response.json.return_value = json_data
    return response


class FakeJenkins:
    """Answer ``jenkins_request`` calls from canned responses keyed by method and path.

    Each route holds a list of responses served in order; the last one is
    repeated once the others are used up. Unknown routes raise
    ``jenkins.NotFoundException`` like a real 404, and error statuses raise
    the way ``jenkins_request`` does.
    """

    def __init__(self) -> None:
        self.client = MagicMock(spec=jenkins.Jenkins)
        self.client.server = BASE_URL
        self.client.jenkins_request.side_effect = self._handle
        self.routes: dict[tuple[str, str], list[Any]] = {}
        self.requests: list[Any] = []

    def route(self, method: str, path: str, *responses: Any) -> None:
        self.routes[(method, path)] = list(responses)

    def requests_to(self, method: str, path: str) -> list[Any]:
        return [
            r for r in self.requests
            if r.method == method and urlsplit(r.url).path == path
        ]

    def _handle(self, req, *args, **kwargs):
        self.requests.append(req)
        key = (req.method, urlsplit(req.url).path)
        if key not in self.routes:
            raise jenkins.NotFoundException("Requested item could not be found")
        responses = self.routes[key]
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        # jenkins_request calls raise_for_status() and translates some codes
        status = response.status_code
        if status in (401, 403, 500):
            raise jenkins.JenkinsException(
                f"Error in request. Possibly authentication failed [{status}]"
            )
        if status == 404:
            raise jenkins.NotFoundException("Requested item could not be found")
        if status >= 400:
            raise requests.HTTPError(f"{status} Client Error", response=response)
        return response


class FakeClock:
    def __init__(self) -> None:
        self.start = self.now = 1000.0
        self.sleeps: list[float] = []

    @property
    def elapsed(self) -> float:
        return self.now - self.start

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_jenkins() -> FakeJenkins:
    return FakeJenkins()


@pytest.fixture
def clock():
    """Replace the clock and sleep used by the polling loops."""
    fake = FakeClock()
    with patch("jenkins_wait.job.time.monotonic", side_effect=fake.monotonic), patch(
        "jenkins_wait.job.time.sleep", side_effect=fake.sleep
    ):
        yield fake
