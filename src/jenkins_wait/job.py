"""Jenkins job: trigger builds and wait for them to finish.

Two protocols are offered:

``build`` + ``wait``
    The recommended one. ``build`` returns the queue item Jenkins created
    for the request; ``wait`` follows that exact item until it becomes a
    build, then polls the build until it stops running.

``launch_and_wait``
    Legacy protocol kept for interface parity. It does not track the queue
    item; it snapshots the last build number before submitting and waits
    for ``last + 1`` to finish. If anyone else triggers the same job in
    between, the caller ends up waiting on (and receiving) the wrong build.
    This cannot be resolved from build numbers alone; use ``build`` +
    ``wait`` when that matters.

Both protocols block the calling thread with plain sleeps between polls. The
deadline is computed once on entry and shared by every polling phase; ``wait``
raises on expiry while ``launch_and_wait`` returns the last build unless asked
to raise. A ``threading.Event`` passed as ``cancel_event`` aborts a wait early.

A Job is not safe to share across threads; concurrent refreshes simply
overwrite each other's snapshot.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Callable

import jenkins
import requests

from jenkins_wait.exceptions import (
    JobNotFoundError,
    JobOperationError,
    WaitCancelledError,
    WaitTimeoutError,
)
from jenkins_wait.jenkins_client import is_success, job_path
from jenkins_wait.models import JobSnapshot, ParameterDefinition

if TYPE_CHECKING:
    from jenkins_wait.build import Build
    from jenkins_wait.jenkins_client import JenkinsRegistry
    from jenkins_wait.queue import QueueReference

logger = logging.getLogger(__name__)


class Job:
    """A named job on a Jenkins server.

    The job document is fetched once on construction, so a Job always holds
    a valid snapshot; every query reads that snapshot until ``refresh``.
    """

    def __init__(self, name: str, registry: JenkinsRegistry) -> None:
        self._name = name
        self._registry = registry
        self._data: dict[str, Any] = {}
        self.snapshot: JobSnapshot
        self.refresh()

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return f"{job_path(self._name)}api/json"

    def _path(self, suffix: str) -> str:
        return f"{job_path(self._name)}{suffix}"

    def refresh(self) -> Job:
        """Re-fetch the job document.

        Raises:
            JobNotFoundError: If the server has no job by this name.
        """
        try:
            self._data = self._registry.get(self.url)
        except jenkins.NotFoundException as e:
            raise JobNotFoundError(self._name) from e
        self.snapshot = JobSnapshot.model_validate(self._data)
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_buildable(self) -> bool:
        return self.snapshot.buildable

    def get_build(self, number: int) -> Build:
        return self._registry.get_build(self._name, number)

    def get_builds(self) -> list[Build]:
        return [self.get_build(ref.number) for ref in self.snapshot.builds]

    def get_last_build(self) -> Build | None:
        """Return the most recent build, or None if the job never ran."""
        ref = self.snapshot.last_build
        if ref is None:
            return None
        return self.get_build(ref.number)

    def get_last_successful_build(self) -> Build | None:
        ref = self.snapshot.last_successful_build
        if ref is None:
            return None
        return self.get_build(ref.number)

    def is_currently_building(self) -> bool:
        last_build = self.get_last_build()
        if last_build is None:
            return False
        return last_build.is_building()

    def get_parameters_definition(self) -> dict[str, ParameterDefinition]:
        """Return the job's declared build parameters, keyed by name.

        Each definition carries ``default``, ``choices`` and ``description``,
        any of which is None when the job does not declare it.
        """
        return dict(self.snapshot.parameter_definitions)

    # ------------------------------------------------------------------
    # Trigger & wait
    # ------------------------------------------------------------------
    def _build_path(self, parameters: dict[str, Any] | None) -> str:
        if parameters:
            return self._path("buildWithParameters")
        return self._path("build")

    def launch(self, parameters: dict[str, Any] | None = None) -> bool:
        """Submit a build request without keeping track of it."""
        response = self._registry.post(
            self._build_path(parameters), data=parameters or None
        )
        logger.info("Launched job %s", self._name)
        return is_success(response)

    def build(self, parameters: dict[str, Any] | None = None) -> QueueReference:
        """Submit a build request and return its queue item.

        Does not block. Pass the returned reference to ``wait``.
        """
        return self._registry.post_build(self._build_path(parameters), parameters)

    def _pause(
        self,
        deadline: float,
        interval: float,
        cancel_event: threading.Event | None,
        location: str | None,
    ) -> None:
        remaining = deadline - time.monotonic()
        delay = min(interval, max(remaining, 0))
        if cancel_event is None:
            time.sleep(delay)
        elif cancel_event.wait(delay):
            logger.warning("Wait for job %s cancelled", self._name)
            raise WaitCancelledError(self._name, location)

    def _check_deadline(self, deadline: float, location: str | None, phase: str) -> None:
        if time.monotonic() >= deadline:
            logger.warning("Timed out waiting for job %s (%s)", self._name, phase)
            raise WaitTimeoutError(self._name, location, phase)

    def wait(
        self,
        queue_reference: QueueReference,
        timeout_seconds: float = 3600,
        check_interval_seconds: float = 1,
        cancel_event: threading.Event | None = None,
    ) -> Build:
        """Block until the build behind *queue_reference* has finished.

        First polls the queue item until the scheduler assigns it a build
        number, then polls that build until it stops running. One deadline
        covers both phases.

        Raises:
            WaitTimeoutError: If the deadline passes in either phase.
            WaitCancelledError: If *cancel_event* is set while waiting.
        """
        deadline = time.monotonic() + timeout_seconds
        location = queue_reference.location

        queue_reference.refresh()
        while queue_reference.executable is None:
            self._check_deadline(deadline, location, "queue")
            logger.debug("Job %s still queued at %s", self._name, location)
            self._pause(deadline, check_interval_seconds, cancel_event, location)
            queue_reference.refresh()
        number = queue_reference.executable.number
        logger.info("Job %s queue item %s started build #%d", self._name, location, number)

        build = self.get_build(number)
        while build.is_building():
            self._check_deadline(deadline, location, "build")
            logger.debug("Job %s build #%d still running", self._name, number)
            self._pause(deadline, check_interval_seconds, cancel_event, location)
            build.refresh()

        build = self.get_build(number)
        logger.info("Job %s build #%d finished: %s", self._name, number, build.result)
        return build

    def launch_and_wait(
        self,
        parameters: dict[str, Any] | None = None,
        timeout_seconds: float = 86400,
        check_interval_seconds: float = 5,
        cancel_event: threading.Event | None = None,
        raise_on_timeout: bool = False,
    ) -> Build | None:
        """Trigger a build and block until it finishes, matching by build number.

        If the job is already building, no new build is submitted and the
        running build is awaited instead. Otherwise the build numbered one
        past the current last build is awaited. A build triggered by someone
        else in the meantime can take that number, in which case the build
        returned is not the one this call submitted.

        When the deadline passes, polling stops and the last build is
        returned as it stands, possibly still running. Pass
        ``raise_on_timeout=True`` to get a ``WaitTimeoutError`` instead.

        Returns:
            The job's last build once polling ends.

        Raises:
            WaitTimeoutError: If the deadline passes and *raise_on_timeout* is set.
            WaitCancelledError: If *cancel_event* is set while waiting.
        """
        deadline = time.monotonic() + timeout_seconds

        if not self.is_currently_building():
            last_build = self.get_last_build()
            last_number = last_build.number if last_build else 0
            self.launch(parameters)
            while self._awaiting_launched_build(last_number):
                if self._launch_deadline_passed(deadline, raise_on_timeout):
                    break
                self._pause(deadline, check_interval_seconds, cancel_event, None)
                self.refresh()
        else:
            logger.info("Job %s is already building, waiting for it", self._name)
            while self.is_currently_building():
                if self._launch_deadline_passed(deadline, raise_on_timeout):
                    break
                self._pause(deadline, check_interval_seconds, cancel_event, None)
                self.refresh()

        return self.get_last_build()

    def _launch_deadline_passed(self, deadline: float, raise_on_timeout: bool) -> bool:
        if time.monotonic() < deadline:
            return False
        if raise_on_timeout:
            logger.warning("Timed out waiting for job %s", self._name)
            raise WaitTimeoutError(self._name, None, "build")
        logger.warning("Stopped waiting for job %s at the deadline", self._name)
        return True

    def _awaiting_launched_build(self, last_number: int) -> bool:
        build = self.get_last_build()
        if build is None or build.number == last_number:
            return True
        return build.number == last_number + 1 and build.is_building()

    # ------------------------------------------------------------------
    # Single-shot operations
    # ------------------------------------------------------------------
    def _checked(
        self, action: str, send: Callable[[], requests.Response]
    ) -> requests.Response:
        """Run *send*, turning an HTTP error status into ``JobOperationError``.

        python-jenkins raises for any status >= 400: ``JenkinsException`` for
        401/403/500, ``NotFoundException`` for 404 and ``requests.HTTPError``
        for the rest. Timeouts and connection failures still propagate.
        """
        try:
            response = send()
        except jenkins.TimeoutException:
            raise
        except (requests.HTTPError, jenkins.JenkinsException) as e:
            raise JobOperationError(self._name, self._registry.base_url, action) from e
        if not is_success(response):
            raise JobOperationError(self._name, self._registry.base_url, action)
        return response

    def _post_or_fail(self, suffix: str, action: str, **kwargs: Any) -> None:
        self._checked(action, lambda: self._registry.post(self._path(suffix), **kwargs))
        logger.info("Job %s: %s ok", self._name, action)

    def delete(self) -> None:
        self._post_or_fail("doDelete", "deleting")

    def enable(self) -> None:
        self._post_or_fail("enable", "enabling")

    def disable(self) -> None:
        self._post_or_fail("disable", "disabling")

    def get_config(self) -> str:
        """Return the job's config.xml."""
        response = self._checked(
            "getting configuration of",
            lambda: self._registry.get_text(self._path("config.xml")),
        )
        return response.text

    def set_job_config(self, configuration: str) -> None:
        """Replace the job's config.xml with *configuration*."""
        self._post_or_fail(
            "config.xml",
            "setting configuration of",
            data=configuration.encode("utf-8"),
            headers={"Content-Type": "text/xml"},
        )

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"<Job {self._name}>"
