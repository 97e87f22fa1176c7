"""Jenkins wait MCP Server — trigger Jenkins jobs and wait for their builds."""

from __future__ import annotations

import logging
import os
import threading
from functools import partial
from typing import Any, Callable

import anyio
import jenkins
import requests
from fastmcp import FastMCP

from jenkins_wait.build import Build
from jenkins_wait.exceptions import JobError
from jenkins_wait.jenkins_client import JenkinsRegistry, get_client
from jenkins_wait.queue import QueueReference

mcp = FastMCP("Jenkins Wait MCP Server")

_EXPECTED_ERRORS = (jenkins.JenkinsException, requests.RequestException, JobError, ValueError)


def _format_error(e: Exception) -> dict[str, Any]:
    """Format an exception into a consistent error response."""
    return {"error": True, "message": str(e)}


async def _run_in_worker(
    func: Callable[[threading.Event], dict[str, Any]],
) -> dict[str, Any]:
    """Run a blocking wait in a worker thread so the event loop stays free.

    *func* receives a cancellation event. If the tool call is cancelled the
    event is set, and the worker stops at its next poll.
    """
    cancel_event = threading.Event()
    try:
        return await anyio.to_thread.run_sync(func, cancel_event, abandon_on_cancel=True)
    except anyio.get_cancelled_exc_class():
        cancel_event.set()
        raise


def _build_summary(build: Build) -> dict[str, Any]:
    return {
        "build_number": build.number,
        "result": build.result,
        "building": build.is_building(),
        "url": build.snapshot.url or "",
        "duration_ms": build.snapshot.duration,
    }


# ---------------------------------------------------------------------------
# Tool 1: trigger_build
# ---------------------------------------------------------------------------
@mcp.tool
def trigger_build(job_name: str, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
    """Trigger a Jenkins job build, optionally with parameters.

    Args:
        job_name: Full name of the Jenkins job (use '/' for folder paths).
        parameters: Optional dict of build parameters (key-value pairs).

    Returns:
        A dict with the queue item URL to pass to wait_for_build.
    """
    try:
        job = JenkinsRegistry(get_client()).get_job(job_name)
        queue_reference = job.build(parameters)
        return {
            "success": True,
            "job_name": job_name,
            "queue_url": queue_reference.location,
            "queue_id": queue_reference.queue_id,
            "message": f"Job '{job_name}' has been queued at {queue_reference.location}",
        }
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 2: wait_for_build
# ---------------------------------------------------------------------------
def _wait_for_build(
    job_name: str,
    queue_url: str,
    timeout_seconds: float,
    check_interval_seconds: float,
    cancel_event: threading.Event,
) -> dict[str, Any]:
    try:
        registry = JenkinsRegistry(get_client())
        job = registry.get_job(job_name)
        build = job.wait(
            QueueReference(registry, queue_url),
            timeout_seconds=timeout_seconds,
            check_interval_seconds=check_interval_seconds,
            cancel_event=cancel_event,
        )
        return {"success": True, "job_name": job_name, **_build_summary(build)}
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


@mcp.tool
async def wait_for_build(
    job_name: str,
    queue_url: str,
    timeout_seconds: float = 3600,
    check_interval_seconds: float = 1,
) -> dict[str, Any]:
    """Wait until a queued build request has been built and finished.

    Args:
        job_name: Full name of the Jenkins job.
        queue_url: Queue item URL returned by trigger_build.
        timeout_seconds: Give up after this many seconds in total.
        check_interval_seconds: Seconds between two checks.

    Returns:
        A dict with the finished build's number, result and URL.
    """
    return await _run_in_worker(
        partial(_wait_for_build, job_name, queue_url, timeout_seconds, check_interval_seconds)
    )


# ---------------------------------------------------------------------------
# Tool 3: trigger_and_wait
# ---------------------------------------------------------------------------
def _trigger_and_wait(
    job_name: str,
    parameters: dict[str, Any] | None,
    timeout_seconds: float,
    check_interval_seconds: float,
    cancel_event: threading.Event,
) -> dict[str, Any]:
    try:
        job = JenkinsRegistry(get_client()).get_job(job_name)
        queue_reference = job.build(parameters)
        build = job.wait(
            queue_reference,
            timeout_seconds=timeout_seconds,
            check_interval_seconds=check_interval_seconds,
            cancel_event=cancel_event,
        )
        return {
            "success": True,
            "job_name": job_name,
            "queue_url": queue_reference.location,
            **_build_summary(build),
        }
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


@mcp.tool
async def trigger_and_wait(
    job_name: str,
    parameters: dict[str, Any] | None = None,
    timeout_seconds: float = 3600,
    check_interval_seconds: float = 1,
) -> dict[str, Any]:
    """Trigger a Jenkins job and wait for the resulting build to finish.

    Args:
        job_name: Full name of the Jenkins job.
        parameters: Optional dict of build parameters.
        timeout_seconds: Give up after this many seconds in total.
        check_interval_seconds: Seconds between two checks.

    Returns:
        A dict with the finished build's number, result and URL.
    """
    return await _run_in_worker(
        partial(_trigger_and_wait, job_name, parameters, timeout_seconds, check_interval_seconds)
    )


# ---------------------------------------------------------------------------
# Tool 4: get_job_parameters
# ---------------------------------------------------------------------------
@mcp.tool
def get_job_parameters(job_name: str) -> dict[str, Any]:
    """Get the parameter definitions for a Jenkins job.

    Args:
        job_name: Full name of the Jenkins job.

    Returns:
        A dict containing a list of parameter definitions with name, type,
        default value, choices and description for each parameter.
    """
    try:
        job = JenkinsRegistry(get_client()).get_job(job_name)
        params = [
            {
                "name": name,
                "type": definition.type,
                "description": definition.description,
                "default_value": definition.default,
                "choices": definition.choices,
            }
            for name, definition in job.get_parameters_definition().items()
        ]
        return {
            "success": True,
            "job_name": job_name,
            "parameter_count": len(params),
            "parameters": params,
        }
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 5: get_job_status
# ---------------------------------------------------------------------------
@mcp.tool
def get_job_status(job_name: str) -> dict[str, Any]:
    """Get the current state of a Jenkins job.

    Args:
        job_name: Full name of the Jenkins job.

    Returns:
        A dict telling whether the job is buildable and currently building,
        with its last and last successful build numbers (None if absent).
    """
    try:
        job = JenkinsRegistry(get_client()).get_job(job_name)
        last_build = job.snapshot.last_build
        last_successful = job.snapshot.last_successful_build
        return {
            "success": True,
            "job_name": job_name,
            "buildable": job.is_buildable(),
            "building": job.is_currently_building(),
            "last_build": last_build.number if last_build else None,
            "last_successful_build": last_successful.number if last_successful else None,
        }
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Tool 6 & 7: enable_job / disable_job
# ---------------------------------------------------------------------------
@mcp.tool
def enable_job(job_name: str) -> dict[str, Any]:
    """Enable a disabled Jenkins job.

    Args:
        job_name: Full name of the Jenkins job.
    """
    try:
        JenkinsRegistry(get_client()).get_job(job_name).enable()
        return {"success": True, "job_name": job_name, "message": f"Job '{job_name}' enabled."}
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


@mcp.tool
def disable_job(job_name: str) -> dict[str, Any]:
    """Disable a Jenkins job so it can no longer be built.

    Args:
        job_name: Full name of the Jenkins job.
    """
    try:
        JenkinsRegistry(get_client()).get_job(job_name).disable()
        return {"success": True, "job_name": job_name, "message": f"Job '{job_name}' disabled."}
    except _EXPECTED_ERRORS as e:
        return _format_error(e)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main() -> None:
    logging.basicConfig(
        level=os.environ.get("JENKINS_WAIT_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
