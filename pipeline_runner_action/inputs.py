"""Parsing and validation of raw action inputs."""

import json
import re
from collections.abc import Mapping
from typing import Any, NoReturn

from pydantic import ValidationError

from pipeline_runner_action.models.inputs import ActionInputs, Variable

ORGANIZATION_PATTERN = re.compile(r"[A-Za-z0-9][\w.-]*[A-Za-z0-9]", re.ASCII)
PIPELINE_ID_PATTERN = re.compile(r"\d+", re.ASCII)

TRUE_VALUES = frozenset(["true", "True", "TRUE"])
FALSE_VALUES = frozenset(["false", "False", "FALSE"])

ORGANIZATION_INPUT = "azure-devops-organization"
PROJECT_INPUT = "azure-devops-project"
PIPELINE_ID_INPUT = "pipeline-id"
PARAMETERS_INPUT = "pipeline-parameters"
VARIABLES_INPUT = "pipeline-variables"
BRANCH_INPUT = "branch"
PREVIEW_RUN_INPUT = "preview-run"


class InputValidationError(ValueError):
    """Raised when an action input is missing or malformed."""


def resolve_configuration(raw_inputs: Mapping[str, str]) -> ActionInputs:
    """Validate raw action inputs and build the run configuration.

    Args:
        raw_inputs: Input values keyed by action input name; missing keys and
                    empty strings are treated alike.

    Returns:
        The validated configuration

    Raises:
        InputValidationError: On the first input that fails validation

    """
    organization = _required(raw_inputs, ORGANIZATION_INPUT)
    project = _required(raw_inputs, PROJECT_INPUT)
    pipeline_id = _required(raw_inputs, PIPELINE_ID_INPUT)

    if not ORGANIZATION_PATTERN.fullmatch(organization):
        raise InputValidationError(
            "Invalid organization name. Organization names must start and end "
            "with alphanumeric characters."
        )

    if not PIPELINE_ID_PATTERN.fullmatch(pipeline_id):
        raise InputValidationError("Pipeline ID must be a numeric value.")

    parameters = _parse_json_object(raw_inputs, PARAMETERS_INPUT)
    variables = {
        key: normalize_variable(value)
        for key, value in _parse_json_object(raw_inputs, VARIABLES_INPUT).items()
    }

    return ActionInputs(
        organization=organization,
        project=project,
        pipeline_id=pipeline_id,
        parameters=parameters,
        variables=variables,
        branch=raw_inputs.get(BRANCH_INPUT, "").strip() or None,
        preview_run=parse_boolean(
            raw_inputs.get(PREVIEW_RUN_INPUT, "").strip(), PREVIEW_RUN_INPUT
        ),
    )


def normalize_variable(raw: Any) -> Variable:
    """Normalize one variables entry.

    Objects carrying a ``value`` key are taken as variables already, anything
    else is a bare value that gets wrapped as a non-secret variable.
    """
    if isinstance(raw, Mapping) and "value" in raw:
        try:
            return Variable.model_validate(raw)
        except ValidationError as e:
            raise InputValidationError(f"Invalid {VARIABLES_INPUT} JSON: {e}") from e
    return Variable(value=raw, is_secret=False)


def parse_boolean(raw: str, name: str) -> bool:
    """Parse a boolean input using the YAML 1.2 core schema spellings."""
    if not raw or raw in FALSE_VALUES:
        return False
    if raw in TRUE_VALUES:
        return True
    raise InputValidationError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def _required(raw_inputs: Mapping[str, str], name: str) -> str:
    value = raw_inputs.get(name, "").strip()
    if not value:
        raise InputValidationError(f"Input required and not supplied: {name}")
    return value


def _parse_json_object(raw_inputs: Mapping[str, str], name: str) -> dict[str, Any]:
    try:
        parsed = json.loads(
            raw_inputs.get(name) or "{}", parse_constant=_reject_constant
        )
    except ValueError as e:
        raise InputValidationError(f"Invalid {name} JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise InputValidationError(
            f"Invalid {name} JSON: expected an object, got {type(parsed).__name__}"
        )
    return parsed


def _reject_constant(constant: str) -> NoReturn:
    raise ValueError(f"Unexpected token {constant!r} is not valid JSON")
