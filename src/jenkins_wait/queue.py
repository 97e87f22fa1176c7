"""Handle on a build request waiting in the Jenkins queue."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from jenkins_wait.models import Executable, QueueItemSnapshot

if TYPE_CHECKING:
    from jenkins_wait.jenkins_client import JenkinsRegistry

logger = logging.getLogger(__name__)


class QueueReference:
    """Pointer to a submitted build request.

    *location* is the queue item URL the server returned on submission
    (``.../queue/item/<id>/``). It carries no build number; the number
    appears under ``executable`` once the scheduler starts the build.

    Nothing is fetched until the first ``refresh``. Instances are not
    thread-safe: concurrent refreshes overwrite each other's snapshot.
    """

    def __init__(self, registry: JenkinsRegistry, location: str) -> None:
        self._registry = registry
        self.location = location
        self._data: dict[str, Any] = {}
        self.snapshot: QueueItemSnapshot | None = None

    @property
    def url(self) -> str:
        path = urlsplit(self.location).path
        if not path.endswith("/"):
            path += "/"
        return path + "api/json"

    @property
    def queue_id(self) -> int | None:
        last = urlsplit(self.location).path.rstrip("/").rsplit("/", 1)[-1]
        return int(last) if last.isdigit() else None

    def refresh(self) -> QueueReference:
        """Replace the snapshot with the item's current state.

        An item only ever goes from queued to executable. If a refresh
        no longer lists ``executable`` after an earlier one did, the
        previously seen value is kept.
        """
        data = self._registry.get(self.url, depth=0)
        snapshot = QueueItemSnapshot.model_validate(data)
        previous = self.snapshot
        if previous is not None and previous.executable is not None and snapshot.executable is None:
            logger.debug(
                "Queue item %s lost its executable, keeping #%d",
                self.location,
                previous.executable.number,
            )
            data = {**data, "executable": self._data.get("executable")}
            snapshot = snapshot.model_copy(update={"executable": previous.executable})
        self._data = data
        self.snapshot = snapshot
        return self

    def get(self, name: str, default: Any = None) -> Any:
        """Return a top-level attribute of the last snapshot, or *default*."""
        value = self._data.get(name)
        return default if value is None else value

    @property
    def executable(self) -> Executable | None:
        return self.snapshot.executable if self.snapshot else None

    @property
    def build_number(self) -> int | None:
        executable = self.executable
        return executable.number if executable else None

    def __repr__(self) -> str:
        return f"<QueueReference {self.location}>"
