"""Module test for the action against WireMock fakes of IMDS and Azure DevOps."""

from pathlib import Path

from wiremock.client import (
    HttpMethods,
    Mapping,
    MappingRequest,
    MappingResponse,
    Mappings,
)

from pipeline_runner_action.cli import run
from pipeline_runner_action.testing.azure.payloads import (
    create_run_response,
    error_response,
    pipeline,
)
from pipeline_runner_action.testing.imds.payloads import (
    instance_response,
    token_response,
)

RAW_INPUTS = {
    "azure-devops-organization": "test-org",
    "azure-devops-project": "test-project",
    "pipeline-id": "42",
    "pipeline-parameters": '{"environment": "staging"}',
    "pipeline-variables": '{"env": "staging"}',
    "branch": "refs/heads/main",
    "preview-run": "false",
}


def mock_metadata_service() -> None:
    """Register IMDS instance and token endpoints."""
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.GET,
                url_path="/metadata/instance",
                headers={"Metadata": {"equalTo": "true"}},
            ),
            response=MappingResponse(
                status=200,
                headers={"Content-Type": "application/json"},
                json_body=instance_response(),
            ),
        )
    )
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.GET,
                url_path="/metadata/identity/oauth2/token",
                query_parameters={
                    "api-version": {"equalTo": "2018-02-01"},
                    "resource": {"equalTo": "https://app.vssps.visualstudio.com/"},
                },
                headers={"Metadata": {"equalTo": "true"}},
            ),
            response=MappingResponse(
                status=200,
                headers={"Content-Type": "application/json"},
                json_body=token_response(access_token="wiremock-token"),
            ),
        )
    )


def mock_pipeline_access(status: int = 200) -> None:
    """Register the pipeline lookup endpoint."""
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.GET,
                url_path="/test-org/test-project/_apis/pipelines/42",
                headers={"Authorization": {"equalTo": "Bearer wiremock-token"}},
            ),
            response=MappingResponse(
                status=status,
                headers={"Content-Type": "application/json"},
                json_body=pipeline(),
            ),
        )
    )


async def test_action_runs_pipeline(wiremock_url: str, tmp_path: Path) -> None:
    """Action authenticates via IMDS and starts the pipeline run."""
    mock_metadata_service()
    mock_pipeline_access()
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.POST,
                url_path="/test-org/test-project/_apis/pipelines/42/runs",
                headers={"Authorization": {"equalTo": "Bearer wiremock-token"}},
                body_patterns=[
                    {
                        "matchesJsonPath": (
                            "$.resources.repositories.self"
                            "[?(@.refName == 'refs/heads/main')]"
                        )
                    },
                    {"matchesJsonPath": "$.variables.env[?(@.value == 'staging')]"},
                ],
            ),
            response=MappingResponse(
                status=200,
                headers={"Content-Type": "application/json"},
                json_body=create_run_response(
                    run_id=999, web_url="https://dev.azure.com/run/999"
                ),
            ),
        )
    )
    output_file = tmp_path / "github_output"

    exit_code = await run(
        RAW_INPUTS,
        api_base_url=wiremock_url,
        imds_base_url=wiremock_url,
        output_file=output_file,
    )

    assert exit_code == 0
    assert output_file.read_text().splitlines() == [
        "run-id=999",
        "run-name=20991231.1",
        "status=inProgress",
        "run-url=https://dev.azure.com/run/999",
    ]


async def test_action_fails_without_pipeline_access(
    wiremock_url: str, tmp_path: Path
) -> None:
    """Action fails before triggering when the pipeline is not accessible."""
    mock_metadata_service()
    mock_pipeline_access(status=404)
    Mappings.create_mapping(
        Mapping(
            request=MappingRequest(
                method=HttpMethods.POST,
                url_path="/test-org/test-project/_apis/pipelines/42/runs",
            ),
            response=MappingResponse(
                status=404,
                json_body=error_response("Pipeline not found"),
            ),
        )
    )
    output_file = tmp_path / "github_output"

    exit_code = await run(
        RAW_INPUTS,
        api_base_url=wiremock_url,
        imds_base_url=wiremock_url,
        output_file=output_file,
    )

    assert exit_code == 1
    assert not output_file.exists()
