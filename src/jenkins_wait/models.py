"""Typed views of the JSON documents served by the Jenkins remote API.

Jenkins documents are loosely shaped: most fields may be missing or ``null``
depending on the job type and installed plugins. Every model therefore
ignores unknown keys and gives optional fields an explicit ``None`` default,
so presence is decided once, when a snapshot is decoded.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class JenkinsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class BuildRef(JenkinsModel):
    """Pointer to a build as embedded in a job document."""

    number: int
    url: str | None = None


class Executable(JenkinsModel):
    """The build a queue item turned into once the scheduler picked it up."""

    number: int
    url: str | None = None


class ParameterDefinition(JenkinsModel):
    """One build parameter declared by a job."""

    name: str
    type: str | None = None
    description: str | None = None
    default: Any = None
    choices: list[Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def flatten_default(cls, obj: Any) -> Any:
        # Jenkins nests the default as {"defaultParameterValue": {"value": ...}}
        if isinstance(obj, dict) and "defaultParameterValue" in obj:
            default = obj.get("defaultParameterValue") or {}
            obj = {**obj, "default": default.get("value")}
        return obj


class JobSnapshot(JenkinsModel):
    name: str | None = None
    url: str | None = None
    buildable: bool = False
    color: str | None = None
    in_queue: bool = Field(default=False, alias="inQueue")
    next_build_number: int | None = Field(default=None, alias="nextBuildNumber")
    last_build: BuildRef | None = Field(default=None, alias="lastBuild")
    last_successful_build: BuildRef | None = Field(
        default=None, alias="lastSuccessfulBuild"
    )
    builds: list[BuildRef] = Field(default_factory=list)
    actions: list[Any] = Field(default_factory=list)
    properties: list[Any] = Field(default_factory=list, alias="property")
    parameter_definitions: dict[str, ParameterDefinition] = Field(
        default_factory=dict, exclude=True
    )

    @model_validator(mode="after")
    def collect_parameter_definitions(self) -> JobSnapshot:
        """Gather parameter definitions from actions, then job properties.

        Older Jenkins releases list them under ``actions``, newer ones under
        ``property``. A name declared twice keeps the last definition seen.
        """
        definitions: dict[str, ParameterDefinition] = {}
        for section in [*self.actions, *self.properties]:
            if not isinstance(section, dict):
                continue
            for raw in section.get("parameterDefinitions") or []:
                definition = ParameterDefinition.model_validate(raw)
                definitions[definition.name] = definition
        self.parameter_definitions = definitions
        return self


class QueueItemSnapshot(JenkinsModel):
    id: int | None = None
    url: str | None = None
    why: str | None = None
    blocked: bool = False
    buildable: bool = False
    stuck: bool = False
    cancelled: bool = False
    executable: Executable | None = None


class BuildSnapshot(JenkinsModel):
    number: int
    url: str | None = None
    building: bool = False
    result: str | None = None  # SUCCESS, FAILURE, ABORTED, UNSTABLE, None while building
    display_name: str | None = Field(default=None, alias="displayName")
    duration: int = 0
    timestamp: int = 0
