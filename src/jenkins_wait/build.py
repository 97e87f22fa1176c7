"""Read-only view of one build of a job."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jenkins_wait.jenkins_client import job_path
from jenkins_wait.models import BuildSnapshot

if TYPE_CHECKING:
    from jenkins_wait.jenkins_client import JenkinsRegistry


class Build:
    """A build, identified by its job name and build number.

    The snapshot is fetched on construction and only changes on ``refresh``.
    """

    def __init__(self, job_name: str, number: int, registry: JenkinsRegistry) -> None:
        self.job_name = job_name
        self._number = number
        self._registry = registry
        self._data: dict[str, Any] = {}
        self.snapshot: BuildSnapshot
        self.refresh()

    @property
    def url(self) -> str:
        return f"{job_path(self.job_name)}{self._number}/api/json"

    def refresh(self) -> Build:
        self._data = self._registry.get(self.url)
        self.snapshot = BuildSnapshot.model_validate(self._data)
        return self

    @property
    def number(self) -> int:
        return self._number

    @property
    def result(self) -> str | None:
        return self.snapshot.result

    def is_building(self) -> bool:
        return self.snapshot.building

    def get(self, name: str, default: Any = None) -> Any:
        """Return a top-level attribute of the last snapshot, or *default*."""
        value = self._data.get(name)
        return default if value is None else value

    def __repr__(self) -> str:
        return f"<Build {self.job_name} #{self._number}>"
