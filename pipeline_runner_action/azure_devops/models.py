"""Pydantic models for Azure DevOps API requests and responses."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pipeline_runner_action.models.inputs import Variable

type PipelineRunState = Literal[
    "unknown",
    "canceling",
    "completed",
    "inProgress",
]

type PipelineRunResult = Literal[
    "unknown",
    "canceled",
    "failed",
    "succeeded",
]


class Link(BaseModel):
    """Link in _links."""

    href: str


class RunLinks(BaseModel):
    """Links in pipeline run response."""

    self_link: Link | None = Field(default=None, alias="self")
    web: Link | None = None


class PipelineReference(BaseModel):
    """Back-reference from a run to its pipeline."""

    id: int
    name: str
    revision: int | None = None
    url: str | None = None
    folder: str | None = None


class PipelineRun(BaseModel):
    """A pipeline run from Azure DevOps API."""

    id: int
    name: str
    state: PipelineRunState
    result: PipelineRunResult | None = None
    created_date: datetime = Field(alias="createdDate")
    finished_date: datetime | None = Field(default=None, alias="finishedDate")
    pipeline: PipelineReference | None = None
    url: str | None = None
    links: RunLinks | None = Field(default=None, alias="_links")
    template_parameters: Mapping[str, Any] | None = Field(
        default=None, alias="templateParameters"
    )
    variables: Mapping[str, Variable] | None = None
    final_yaml: str | None = Field(default=None, alias="finalYaml")

    @property
    def web_url(self) -> str | None:
        """Browser URL of the run, if the API returned one."""
        if self.links and self.links.web:
            return self.links.web.href
        return None


class RepositoryResourceParameters(BaseModel):
    """Repository resource override for a run."""

    model_config = ConfigDict(populate_by_name=True)

    ref_name: str | None = Field(default=None, alias="refName")
    version: str | None = None


class RunResourcesParameters(BaseModel):
    """Resource overrides for a run."""

    repositories: Mapping[str, RepositoryResourceParameters] | None = None


class RunPipelineParameters(BaseModel):
    """Request body of the run pipeline endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    preview_run: bool = Field(default=False, alias="previewRun")
    template_parameters: Mapping[str, Any] = Field(
        default_factory=dict, alias="templateParameters"
    )
    variables: Mapping[str, Variable] = Field(default_factory=dict)
    resources: RunResourcesParameters | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body, leaving out fields that were never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class AzureDevOpsError(BaseModel):
    """Error object returned by the Azure DevOps REST API."""

    message: str
    type_name: str | None = Field(default=None, alias="typeName")
    type_key: str | None = Field(default=None, alias="typeKey")
    error_code: int | None = Field(default=None, alias="errorCode")
    event_id: int | None = Field(default=None, alias="eventId")
