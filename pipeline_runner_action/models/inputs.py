"""Models for the resolved action inputs."""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import Field, field_validator

from pipeline_runner_action.models.base import Model


def to_variable_string(raw: Any) -> str:
    """Coerce a JSON scalar to the string form Azure DevOps variables carry.

    Booleans and null use their JSON spelling, integral floats below 1e21
    drop the trailing ``.0`` and containers are serialized as compact JSON.
    """
    match raw:
        case str():
            return raw
        case float() if raw.is_integer() and abs(raw) < 1e21:
            return str(int(raw))
        case float():
            return repr(raw)
        case _:
            return json.dumps(raw, separators=(",", ":"))


class Variable(Model):
    """A pipeline variable as accepted by the Pipelines runs API."""

    value: str
    is_secret: bool | None = Field(default=None, alias="isSecret")

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> str:
        return to_variable_string(value)


class ActionInputs(Model):
    """Validated configuration for a single pipeline run invocation."""

    organization: str = Field(..., description="Azure DevOps organization name")
    project: str = Field(..., description="Azure DevOps project name or ID")
    pipeline_id: str = Field(..., description="Numeric pipeline identifier")
    parameters: Mapping[str, Any] = Field(
        default_factory=dict, description="Template parameters for the run"
    )
    variables: Mapping[str, Variable] = Field(
        default_factory=dict, description="Runtime variables for the run"
    )
    branch: str | None = Field(
        default=None, description="Repository ref override (e.g. refs/heads/main)"
    )
    preview_run: bool = Field(
        default=False, description="Validate the run without executing it"
    )
