"""Trigger Jenkins builds and wait for them to finish."""

from jenkins_wait.build import Build
from jenkins_wait.exceptions import (
    JobError,
    JobNotFoundError,
    JobOperationError,
    WaitCancelledError,
    WaitTimeoutError,
)
from jenkins_wait.jenkins_client import JenkinsRegistry, get_client, get_registry
from jenkins_wait.job import Job
from jenkins_wait.queue import QueueReference

__all__ = [
    "Build",
    "JenkinsRegistry",
    "Job",
    "JobError",
    "JobNotFoundError",
    "JobOperationError",
    "QueueReference",
    "WaitCancelledError",
    "WaitTimeoutError",
    "get_client",
    "get_registry",
]
