"""Tests for run request body construction and error parsing."""

import json

from pipeline_runner_action.azure_devops.client import (
    build_run_parameters,
    extract_error_message,
)
from pipeline_runner_action.models.inputs import Variable
from pipeline_runner_action.testing.azure.payloads import error_response
from pipeline_runner_action.testing.factories import ActionInputsFactory


def test_payload_without_branch_omits_resources() -> None:
    """Leaves resources out entirely when no branch is set."""
    inputs = ActionInputsFactory.build(
        parameters={"environment": "prod"},
        variables={"env": Variable(value="prod", is_secret=False)},
    )

    payload = build_run_parameters(inputs).to_payload()

    assert payload == {
        "previewRun": False,
        "templateParameters": {"environment": "prod"},
        "variables": {"env": {"value": "prod", "isSecret": False}},
    }


def test_payload_with_branch_overrides_self_repository() -> None:
    """Points the self repository at the requested ref."""
    inputs = ActionInputsFactory.build(branch="refs/heads/main")

    payload = build_run_parameters(inputs).to_payload()

    assert payload["resources"] == {
        "repositories": {"self": {"refName": "refs/heads/main"}}
    }


def test_payload_carries_preview_flag() -> None:
    """Sends previewRun as given."""
    inputs = ActionInputsFactory.build(preview_run=True)

    payload = build_run_parameters(inputs).to_payload()

    assert payload["previewRun"] is True


def test_payload_keeps_null_template_parameters() -> None:
    """Keeps null values inside template parameters."""
    inputs = ActionInputsFactory.build(parameters={"optional": None, "n": [1, 2]})

    payload = build_run_parameters(inputs).to_payload()

    assert payload["templateParameters"] == {"optional": None, "n": [1, 2]}


def test_payload_omits_unset_secret_flag() -> None:
    """Omits isSecret for variables that never had one."""
    inputs = ActionInputsFactory.build(
        variables={"token": Variable.model_validate({"value": "abc"})}
    )

    payload = build_run_parameters(inputs).to_payload()

    assert payload["variables"] == {"token": {"value": "abc"}}


def test_extract_error_message_from_error_object() -> None:
    """Uses the message of an Azure DevOps error body."""
    body = json.dumps(error_response("Pipeline not found"))

    assert extract_error_message(body) == "Pipeline not found"


def test_extract_error_message_falls_back_to_body() -> None:
    """Returns the raw body when it is not an error object."""
    assert extract_error_message("<html>Bad Gateway</html>") == (
        "<html>Bad Gateway</html>"
    )


def test_extract_error_message_without_message_field() -> None:
    """Returns the raw body when the JSON has no message."""
    assert extract_error_message('{"error": "nope"}') == '{"error": "nope"}'
