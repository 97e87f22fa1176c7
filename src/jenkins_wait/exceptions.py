"""Errors raised by the job orchestration layer.

Transport failures from python-jenkins (``jenkins.JenkinsException`` and its
subclasses) are never wrapped here; they propagate to the caller as-is.
"""

from __future__ import annotations


class JobError(Exception):
    """Base class for errors tied to a single Jenkins job."""

    def __init__(self, job_name: str, message: str) -> None:
        super().__init__(message)
        self.job_name = job_name


class JobNotFoundError(JobError):
    """The server reports that the job does not exist."""

    def __init__(self, job_name: str) -> None:
        super().__init__(job_name, f"Job '{job_name}' does not exist")


class WaitTimeoutError(JobError, TimeoutError):
    """A polling loop ran past its deadline."""

    def __init__(
        self, job_name: str, location: str | None = None, phase: str = "build"
    ) -> None:
        if phase == "queue":
            message = f"Timed out waiting for job '{job_name}' to leave the queue"
        else:
            message = f"Timed out waiting for a build of job '{job_name}' to finish"
        if location:
            message += f" ({location})"
        super().__init__(job_name, message)
        self.location = location
        self.phase = phase


class WaitCancelledError(JobError):
    """The caller cancelled a wait before it completed."""

    def __init__(self, job_name: str, location: str | None = None) -> None:
        message = f"Wait for job '{job_name}' was cancelled"
        if location:
            message += f" ({location})"
        super().__init__(job_name, message)
        self.location = location


class JobOperationError(JobError):
    """A single-shot job operation (delete, enable, ...) did not succeed."""

    def __init__(self, job_name: str, server: str, action: str) -> None:
        super().__init__(job_name, f"Error {action} job '{job_name}' on {server}")
        self.server = server
        self.action = action
