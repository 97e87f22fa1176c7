"""Jenkins client wrapper with environment-based configuration."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urljoin

import jenkins
import requests

if TYPE_CHECKING:
    from jenkins_wait.build import Build
    from jenkins_wait.job import Job
    from jenkins_wait.queue import QueueReference

logger = logging.getLogger(__name__)


def get_client() -> jenkins.Jenkins:
    """Create a Jenkins client from environment variables.

    Environment variables:
        JENKINS_URL: Jenkins server URL (required)
        JENKINS_USERNAME: Jenkins username (optional)
        JENKINS_API_TOKEN: Jenkins API token (optional)
        JENKINS_TIMEOUT: HTTP timeout in seconds (optional)

    Returns:
        A configured Jenkins client instance.

    Raises:
        ValueError: If JENKINS_URL is not set or JENKINS_TIMEOUT is not a number.
    """
    url = os.environ.get("JENKINS_URL")
    if not url:
        raise ValueError(
            "JENKINS_URL environment variable is required. "
            "Please set it to your Jenkins server URL."
        )
    username = os.environ.get("JENKINS_USERNAME", "")
    token = os.environ.get("JENKINS_API_TOKEN", "")
    timeout = os.environ.get("JENKINS_TIMEOUT")
    if timeout:
        return jenkins.Jenkins(
            url, username=username, password=token, timeout=float(timeout)
        )
    return jenkins.Jenkins(url, username=username, password=token)


def get_registry() -> JenkinsRegistry:
    """Create a registry bound to the client described by the environment."""
    return JenkinsRegistry(get_client())


def job_path(name: str) -> str:
    """Return the URL path of a job, relative to the server root.

    Use '/' in *name* for folder paths: ``a/b`` maps to ``job/a/job/b/``.
    """
    segments = [s for s in name.split("/") if s]
    return "".join(f"job/{quote(s, safe='')}/" for s in segments)


def is_success(response: requests.Response) -> bool:
    """True when the server answered with a 2xx status."""
    return 200 <= response.status_code < 300


class JenkinsRegistry:
    """Entry point to the jobs, builds and queue items of one Jenkins server.

    Every request goes through ``jenkins.Jenkins.jenkins_request``, so
    authentication, CSRF crumbs and error translation (``NotFoundException``
    on 404, ``JenkinsException`` on auth failures) come from python-jenkins.
    None of these errors are caught here.
    """

    def __init__(self, client: jenkins.Jenkins) -> None:
        self._client = client

    @property
    def client(self) -> jenkins.Jenkins:
        return self._client

    @property
    def base_url(self) -> str:
        return self._client.server

    def _url(self, path: str) -> str:
        return urljoin(self._client.server, path)

    def get(self, path: str, depth: int = 1) -> dict[str, Any]:
        """Fetch and decode the JSON document at *path*."""
        response = self._client.jenkins_request(
            requests.Request("GET", self._url(path), params={"depth": depth})
        )
        return response.json()

    def get_text(self, path: str) -> requests.Response:
        return self._client.jenkins_request(requests.Request("GET", self._url(path)))

    def post(
        self,
        path: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        return self._client.jenkins_request(
            requests.Request("POST", self._url(path), data=data, headers=headers)
        )

    def post_build(
        self, path: str, parameters: dict[str, Any] | None = None
    ) -> QueueReference:
        """Submit a build request and return a handle on the queued item.

        Raises:
            jenkins.EmptyResponseException: If the server did not say where
                the request was queued.
        """
        from jenkins_wait.queue import QueueReference

        response = self.post(path, data=parameters or None)
        location = response.headers.get("Location")
        if not location:
            raise jenkins.EmptyResponseException(
                f"Build request to {self._url(path)} returned no queue location"
            )
        logger.info("Build request %s queued at %s", path, location)
        return QueueReference(self, location)

    def get_job(self, name: str) -> Job:
        from jenkins_wait.job import Job

        return Job(name, self)

    def get_build(self, job_name: str, number: int) -> Build:
        from jenkins_wait.build import Build

        return Build(job_name, number, self)
